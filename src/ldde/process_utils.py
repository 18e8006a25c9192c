"""Subprocess helpers shared by the built-in tools.

Every subprocess receives an explicit environment. :func:`safe_env` builds
that snapshot once from ``os.environ`` at the command-line boundary; nothing
below the CLI reads the ambient environment.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from typing import Any

CommandArg = str | os.PathLike[str]


def safe_env(environ: Mapping[str, str | None]) -> dict[str, str]:
    """Copy ``environ`` without unset or empty values."""
    return {key: value for key, value in environ.items() if value}


def _normalize_command(cmd: Sequence[CommandArg]) -> list[str]:
    """Validate and normalize subprocess command arguments."""
    if not cmd:
        msg = "Command must include at least one argument"
        raise ValueError(msg)

    normalized: list[str] = []
    for arg in cmd:
        if isinstance(arg, os.PathLike):
            value = os.fspath(arg)
        elif isinstance(arg, str):
            value = arg
        else:
            msg = "Command arguments must be strings or os.PathLike"
            raise TypeError(msg)

        if not value.strip():
            msg = "Command arguments cannot be empty or whitespace"
            raise ValueError(msg)

        normalized.append(value)

    return normalized


def run_with_validation(
    cmd: Sequence[CommandArg], **kwargs: Any
) -> subprocess.CompletedProcess[Any]:
    """Run subprocess.run with validation to satisfy security lint checks."""
    normalized_cmd = _normalize_command(cmd)
    return subprocess.run(normalized_cmd, **kwargs)  # noqa: S603


def run_captured(
    cmd: Sequence[CommandArg],
    env: Mapping[str, str],
    cwd: str | os.PathLike[str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run ``cmd`` with text output captured and no exit-code check."""
    return run_with_validation(
        cmd,
        env=dict(env),
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )


def stderr_or_stdout(result: subprocess.CompletedProcess[str]) -> str:
    """Best diagnostic text from a finished process."""
    return (result.stderr or result.stdout or "").strip() or (
        f"exit code {result.returncode}"
    )


__all__ = [
    "run_captured",
    "run_with_validation",
    "safe_env",
    "stderr_or_stdout",
]
