"""YAML sanitizer profiles, selected per feed domain."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from feedtidy.sanitizer.config import DEFAULT_CONFIG, SanitizerConfig


def _best_domain(host: str, domains: dict[Any, Any]) -> dict[str, Any]:
    """Section of the longest domain key equal to *host* or a parent of it."""
    matches = [
        (len(name), section)
        for name, section in domains.items()
        if isinstance(name, str) and isinstance(section, dict)
        and (host == name.lower() or host.endswith("." + name.lower()))
    ]
    return max(matches, key=lambda m: m[0])[1] if matches else {}


def load_profile(path: str | Path, url: str = "") -> dict[str, Any]:
    """Read the profile at *path* and merge the sections that apply to *url*.

    The file holds a ``default`` mapping and a ``domains`` mapping keyed by
    host name.  The section of the longest key matching the URL's host
    (exactly or as a parent domain) is layered over ``default``.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return {}
    default = data.get("default")
    domains = data.get("domains")
    host = urlparse(url).netloc.lower() if url else ""

    merged: dict[str, Any] = dict(default) if isinstance(default, dict) else {}
    if host and isinstance(domains, dict):
        merged.update(_best_domain(host, domains))
    return merged


def _list(profile: dict[str, Any], key: str) -> list[str]:
    value = profile.get(key) or []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def config_from_profile(
    profile: dict[str, Any],
    base: SanitizerConfig = DEFAULT_CONFIG,
) -> SanitizerConfig:
    """Build a :class:`SanitizerConfig` from a merged profile mapping.

    ``element_denylist``, ``prunable_empty_tags`` and ``attribute_denylist``
    replace the corresponding table of *base*; ``extra_*`` keys extend it and
    ``allow_*`` keys remove names from it.  Unknown keys are ignored.
    """
    config = SanitizerConfig(
        element_denylist=profile.get("element_denylist") or base.element_denylist,
        prunable_empty_tags=profile.get("prunable_empty_tags") or base.prunable_empty_tags,
        attribute_denylist=profile.get("attribute_denylist") or base.attribute_denylist,
    )
    return config.extended(
        elements=_list(profile, "extra_elements"),
        prunable=_list(profile, "extra_prunable"),
        attributes=_list(profile, "extra_attributes"),
    ).without(
        elements=_list(profile, "allow_elements"),
        attributes=_list(profile, "allow_attributes"),
    )


def config_for_url(path: str | Path | None, url: str = "") -> SanitizerConfig:
    """Return the config for *url* from the profile at *path*, or the default."""
    if not path:
        return DEFAULT_CONFIG
    return config_from_profile(load_profile(path, url))
