"""Process settings read from the environment (prefix ``FEEDTIDY_``) and ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

DEFAULT_USER_AGENT = "feedtidy/0.1 (+https://github.com/feedtidy/feedtidy)"


class Settings(BaseSettings):
    # Polling
    fetch_interval: int = Field(default=15, ge=1)       # minutes between runs
    stale_after_minutes: int = Field(default=15, ge=0)  # re-poll a feed after this long
    request_timeout: int = Field(default=30, ge=1)      # seconds
    user_agent: str = DEFAULT_USER_AGENT

    # Storage
    data_dir: Path = Path("./data")

    # Sanitizer
    profile_path: Path | None = None
    min_content_length: int = Field(default=10, ge=0)

    # Generative rewriting (OpenAI-compatible chat completions)
    rewrite_api_key: str = ""
    rewrite_model: str = ""
    rewrite_base_url: str = "https://api.mistral.ai/v1"
    prompt_path: Path = Path("assets/prompt/clean_article_content.txt")

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="FEEDTIDY_", env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
