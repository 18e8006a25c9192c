"""String and key-case helpers."""

import re
from typing import Any

_KEBAB_PATTERN = re.compile(r"-([a-z])")
_UPPER_PATTERN = re.compile(r"[A-Z]")


def kebab_to_camel(text: str) -> str:
    """Convert ``commit-sha`` to ``commitSha``."""
    return _KEBAB_PATTERN.sub(lambda m: m.group(1).upper(), text)


def camel_to_kebab(text: str) -> str:
    """Convert ``commitSha`` to ``commit-sha``."""
    return _UPPER_PATTERN.sub(lambda m: f"-{m.group(0).lower()}", text)


def normalize_keys(value: Any) -> Any:
    """Recursively convert mapping keys from kebab-case to camelCase.

    Lists are walked element by element; scalars are returned unchanged.
    """
    if isinstance(value, dict):
        return {
            kebab_to_camel(str(key)): normalize_keys(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [normalize_keys(item) for item in value]
    return value


def truncate_github_url(url: str) -> str:
    """Shorten a GitHub clone URL to ``owner/repo`` for log lines."""
    return url.replace("https://github.com/", "").replace(".git", "")


__all__ = [
    "camel_to_kebab",
    "kebab_to_camel",
    "normalize_keys",
    "truncate_github_url",
]
