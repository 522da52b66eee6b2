"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from feedtidy.settings import Settings

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def rss_xml() -> str:
    return _read_fixture("rss.xml")


@pytest.fixture
def atom_xml() -> str:
    return _read_fixture("atom.xml")


@pytest.fixture
def profile_path() -> Path:
    return FIXTURES_DIR / "profile.yaml"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    prompt = tmp_path / "prompt.txt"
    prompt.write_text("Rewrite this article.", encoding="utf-8")
    return Settings(
        _env_file=None,
        data_dir=tmp_path / "data",
        prompt_path=prompt,
        rewrite_api_key="test-key",
        rewrite_model="test-model",
        rewrite_base_url="https://llm.example.com/v1",
    )
