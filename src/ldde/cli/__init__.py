"""ldde CLI layer.

Expose ``cli`` and ``main`` lazily to avoid importing ``ldde.cli.main``
at package import time, so ``python -m ldde.cli.main`` runs without a
runpy warning.
"""

__all__ = ["cli", "main"]


def __getattr__(name):  # pragma: no cover - trivial lazy import
    if name in {"cli", "main"}:
        from .main import cli as _cli
        from .main import main as _main

        return _cli if name == "cli" else _main
    raise AttributeError(name)
