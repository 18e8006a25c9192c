"""Terminal output cleanup and pseudo-terminal automation."""

from .ansi import LineCleaner, clean_tty, normalize_overstrikes, strip_vt
from .pty import Prompt, PromptSession, run_with_pty

__all__ = [
    "LineCleaner",
    "Prompt",
    "PromptSession",
    "clean_tty",
    "normalize_overstrikes",
    "run_with_pty",
    "strip_vt",
]
