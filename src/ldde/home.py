"""Workspace and run-settings resolution.

The workspace root is resolved with clear precedence:
1) CLI --root argument
2) $LDDE_ROOT environment variable
3) Current working directory

Below the root, exactly one storage directory (``configs`` or ``dotfiles``)
must exist, and element descriptors are every ``*.yml``/``*.yaml`` file inside
an ``elements/`` directory at any depth.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from .exceptions import ConfigError

STORAGE_CANDIDATES = ("configs", "dotfiles")
ELEMENT_SUFFIXES = (".yml", ".yaml")
DEFAULT_CONCURRENCY = 4

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WorkspacePaths:
    """Resolved locations for one run."""

    root: Path
    storage_directory: Path
    element_files: Tuple[Path, ...]


@dataclass(frozen=True)
class RunSettings:
    concurrency: int = DEFAULT_CONCURRENCY
    keep_going: bool = False
    debug: bool = False


def resolve_root(root_option: Optional[str], environ: Mapping[str, str]) -> Path:
    if root_option:
        return Path(root_option).expanduser().resolve()
    env_root = environ.get("LDDE_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path.cwd().resolve()


def find_storage_directory(root: Path) -> Path:
    """Return ``root/configs`` or ``root/dotfiles``; exactly one must exist."""
    matches: List[Path] = []
    for candidate in STORAGE_CANDIDATES:
        path = root / candidate
        if not path.exists():
            continue
        if not path.is_dir():
            raise ConfigError(f'Path "{path}" exists but is not a directory.')
        matches.append(path)

    if len(matches) > 1:
        found = ", ".join(f'"{m}"' for m in matches)
        raise ConfigError(
            f'Both "configs" and "dotfiles" directories exist ({found}). '
            "Only one storage directory may be present."
        )
    if not matches:
        raise ConfigError(
            'No storage directory found. Expected either a "configs" or '
            f'"dotfiles" directory in {root}.'
        )
    return matches[0]


def find_element_files(root: Path) -> List[Path]:
    """All descriptors under any ``elements/`` directory, sorted."""
    files = [
        path
        for path in root.glob("**/elements/*")
        if path.suffix in ELEMENT_SUFFIXES and path.is_file()
    ]
    if not files:
        raise ConfigError(
            f"No element files found under {root}. Expected "
            "elements/*.yml or elements/*.yaml."
        )
    return sorted(files)


def resolve_workspace(
    root_option: Optional[str], environ: Mapping[str, str]
) -> WorkspacePaths:
    """Resolve root, storage directory, and element files.

    Args:
        root_option: Value of --root CLI option if provided
        environ: Environment snapshot to read $LDDE_ROOT from

    Returns:
        WorkspacePaths for the run

    Raises:
        ConfigError: If the storage directory or element files are missing
    """
    root = resolve_root(root_option, environ)
    if not root.is_dir():
        raise ConfigError(f"Workspace root {root} is not a directory")
    return WorkspacePaths(
        root=root,
        storage_directory=find_storage_directory(root),
        element_files=tuple(find_element_files(root)),
    )


def env_flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() in _TRUTHY


def resolve_run_settings(
    environ: Mapping[str, str],
    concurrency: Optional[int] = None,
    keep_going: bool = False,
    debug: bool = False,
) -> RunSettings:
    """Merge CLI options with $LDDE_CONCURRENCY and $DEBUG."""
    if concurrency is None:
        raw = environ.get("LDDE_CONCURRENCY")
        if raw:
            try:
                concurrency = int(raw)
            except ValueError:
                raise ConfigError(
                    f"LDDE_CONCURRENCY must be an integer, got {raw!r}"
                ) from None
        else:
            concurrency = DEFAULT_CONCURRENCY
    if concurrency < 1:
        raise ConfigError(f"Concurrency must be at least 1, got {concurrency}")

    return RunSettings(
        concurrency=concurrency,
        keep_going=keep_going,
        debug=debug or env_flag(environ, "DEBUG"),
    )


__all__ = [
    "RunSettings",
    "WorkspacePaths",
    "find_element_files",
    "find_storage_directory",
    "resolve_root",
    "resolve_run_settings",
    "resolve_workspace",
]
