"""Drive interactive commands through a pseudo-terminal.

:class:`PromptSession` is the I/O-free half: it accumulates output and
decides which responses to send. :func:`run_with_pty` wires it to a
``pexpect.spawn`` child.
"""

from __future__ import annotations

import logging
import re
import shutil
import sys
from typing import Callable, List, Mapping, NamedTuple, Optional, Sequence

import click
import pexpect

from ..exceptions import PtyError
from .ansi import LineCleaner, strip_vt

logger = logging.getLogger(__name__)

# Escape sequence still open at the end of a chunk.
_PARTIAL_ESCAPE = re.compile(
    r"\x1b(?:\[[\x30-\x3f]*[\x20-\x2f]*|\][^\x07\x1b]*\x1b?|[P^_][^\x1b\x9c]*\x1b?)?\Z"
    r"|\x9b[\x30-\x3f]*[\x20-\x2f]*\Z"
    r"|\x9d[^\x07\x1b]*\x1b?\Z"
    r"|[\x90\x9e\x9f][^\x1b\x9c]*\x1b?\Z"
)

READ_SIZE = 4096
# Longest unterminated sequence held back; anything longer is passed through.
MAX_CARRY = 256
DEFAULT_DIMENSIONS = (120, 30)


class Prompt(NamedTuple):
    match: str
    response: str


def _with_terminator(response: str) -> str:
    if response.endswith("\n") or response.endswith("\r"):
        return response
    return response + "\n"


class PromptSession:
    """Match an ordered list of prompts against streamed terminal output.

    Matching runs on the visible text (control sequences stripped). Prompts
    are tried strictly in order, and each search starts after the end of the
    previous match, so a prompt text that reappears later is matched afresh
    by the next prompt rather than by the one already answered.
    """

    def __init__(self, prompts: Sequence[Prompt]):
        self._prompts: List[Prompt] = [Prompt(p.match, p.response) for p in prompts]
        self._raw: List[str] = []
        self._visible = ""
        self._carry = ""
        self._index = 0
        self._offset = 0

    @property
    def raw(self) -> str:
        return "".join(self._raw)

    @property
    def visible(self) -> str:
        return self._visible

    @property
    def pending(self) -> Optional[Prompt]:
        if self._index < len(self._prompts):
            return self._prompts[self._index]
        return None

    @property
    def matched(self) -> int:
        return self._index

    def feed(self, data: str) -> List[str]:
        """Record a chunk of output and return the responses now due."""
        self._raw.append(data)

        text = self._carry + data
        partial = _PARTIAL_ESCAPE.search(text)
        held = text[partial.start():] if partial else ""
        if held and len(held) <= MAX_CARRY and "\n" not in held:
            self._carry = held
            text = text[: partial.start()]
        else:
            self._carry = ""
        self._visible += strip_vt(text)

        responses: List[str] = []
        while self.pending is not None:
            prompt = self._prompts[self._index]
            position = self._visible.find(prompt.match, self._offset)
            if position < 0:
                break
            logger.debug('Matched prompt: "%s" -> responding', prompt.match)
            self._offset = position + len(prompt.match)
            self._index += 1
            responses.append(_with_terminator(prompt.response))
        return responses


def _exit_code(child) -> int:
    if child.exitstatus is not None:
        return child.exitstatus
    if child.signalstatus is not None:
        return 128 + child.signalstatus
    return 0


def run_with_pty(
    command: Sequence[str],
    *,
    env: Mapping[str, str],
    cwd: Optional[str] = None,
    prompts: Sequence[Prompt] = (),
    exit_on_non_zero: bool = True,
    quiet: bool = False,
    spawn: Callable[..., "pexpect.spawn"] = pexpect.spawn,
) -> str:
    """Run ``command`` in a pseudo-terminal, answering ``prompts`` in order.

    Args:
        command: Program and arguments
        env: Complete environment for the child
        cwd: Working directory
        prompts: Ordered ``(match, response)`` pairs
        exit_on_non_zero: Raise on a non-zero exit instead of warning
        quiet: Do not echo output
        spawn: Factory compatible with ``pexpect.spawn``

    Returns:
        Everything the command printed, unmodified.

    Raises:
        PtyError: If the child cannot be spawned, or exits non-zero while
            ``exit_on_non_zero`` is set.
    """
    if not command:
        raise PtyError("Shell command cannot be empty")

    program, *args = command
    columns, lines = shutil.get_terminal_size(DEFAULT_DIMENSIONS)
    session = PromptSession(prompts)

    try:
        child = spawn(
            program,
            list(args),
            cwd=cwd,
            env=dict(env),
            encoding="utf-8",
            codec_errors="replace",
            dimensions=(lines, columns),
            timeout=None,
        )
    except (pexpect.ExceptionPexpect, OSError) as e:
        raise PtyError(f"PTY spawn failed: {e}") from e

    cleaner = None if quiet or sys.stdout.isatty() else LineCleaner()
    try:
        while True:
            try:
                data = child.read_nonblocking(READ_SIZE, timeout=None)
            except pexpect.EOF:
                break
            if not quiet:
                click.echo(cleaner.feed(data) if cleaner else data, nl=False)
            for response in session.feed(data):
                child.send(response)
    finally:
        child.close()

    if cleaner:
        click.echo(cleaner.flush(), nl=False)

    code = _exit_code(child)
    if code != 0:
        if exit_on_non_zero:
            raise PtyError(f"Command exited with code {code}", exit_code=code)
        logger.warning(
            "Command exited with non-zero code %d, but continuing due to "
            "exit-on-non-zero-code: false",
            code,
        )
    return session.raw


__all__ = ["Prompt", "PromptSession", "run_with_pty"]
