"""Terminal text cleanup.

``strip_vt`` removes CSI sequences, OSC/DCS/PM/APC strings (terminated by BEL
or ST) and bare C1 control bytes. ``normalize_overstrikes`` replays backspace
and carriage-return overwrites the way a terminal would render them.
"""

from __future__ import annotations

import re
from typing import List

VT_PATTERN = re.compile(
    r"\x1b\[[\x30-\x3f]*[\x20-\x2f]*[\x40-\x7e]"
    r"|\x9b[\x30-\x3f]*[\x20-\x2f]*[\x40-\x7e]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x9d[^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1bP[^\x1b\x9c]*(?:\x1b\\|\x9c)"
    r"|\x90[^\x1b\x9c]*(?:\x1b\\|\x9c)"
    r"|\x1b\^[^\x1b\x9c]*(?:\x1b\\|\x9c)"
    r"|\x9e[^\x1b\x9c]*(?:\x1b\\|\x9c)"
    r"|\x1b_[^\x1b\x9c]*(?:\x1b\\|\x9c)"
    r"|\x9f[^\x1b\x9c]*(?:\x1b\\|\x9c)"
    r"|[\x80-\x9f]"
)

_LINE_SPLIT = re.compile(r"\r?\n")


def strip_vt(text: str) -> str:
    """Remove terminal control sequences from ``text``."""
    if not text:
        return ""
    return VT_PATTERN.sub("", text)


def _overwrite_line(line: str) -> str:
    if "\r" not in line:
        return line
    buf: List[str] = []
    for part in line.split("\r"):
        for i, ch in enumerate(part):
            if i < len(buf):
                buf[i] = ch
            else:
                buf.append(ch)
    return "".join(buf)


def normalize_overstrikes(text: str) -> str:
    """Apply backspaces, then carriage-return overwrites per line.

    >>> normalize_overstrikes("abc\\bd")
    'abd'
    >>> normalize_overstrikes("10%\\r50%\\r100%")
    '100%'
    """
    if not text:
        return ""
    out: List[str] = []
    for ch in text:
        if ch == "\b":
            if out:
                out.pop()
        else:
            out.append(ch)
    return "\n".join(_overwrite_line(line) for line in "".join(out).split("\n"))


def clean_tty(text: str) -> str:
    return strip_vt(normalize_overstrikes(text))


class LineCleaner:
    """Incrementally clean a stream of terminal output, one line at a time.

    Partial lines are held back until their newline arrives so that escape
    sequences and overstrikes split across chunks are handled whole.
    """

    def __init__(self) -> None:
        self._carry = ""

    def feed(self, chunk: str) -> str:
        """Consume ``chunk`` and return the cleaned complete lines, if any."""
        self._carry += chunk
        parts = _LINE_SPLIT.split(self._carry)
        self._carry = parts.pop()
        return "".join(clean_tty(part) + "\n" for part in parts)

    def flush(self) -> str:
        """Return the cleaned remainder and reset."""
        rest, self._carry = self._carry, ""
        return clean_tty(rest) if rest else ""


__all__ = [
    "LineCleaner",
    "clean_tty",
    "normalize_overstrikes",
    "strip_vt",
]
