"""execute-bash-command: run a shell command, optionally answering prompts."""

from __future__ import annotations

import os
import shutil
from typing import List, Literal

import click

from ..context import PipelineContext
from ..exceptions import PtyError, ToolError
from ..log import success
from ..models import InteractivePrompt, ToolParams
from ..process_utils import run_with_validation
from ..terminal import Prompt, clean_tty, run_with_pty
from .base import Tool, output_key


class ExecuteBashCommandParams(ToolParams):
    command: str
    shell: Literal["bash", "zsh", "fish"] | None = None
    working_directory: str | None = None
    quiet: bool = False
    output_assign: str | None = None
    exit_on_non_zero_code: bool = True
    interactive_prompts: List[InteractivePrompt] | None = None


def _output_lines(text: str) -> List[str]:
    return [line for line in text.strip().split("\n") if line]


class ExecuteBashCommand(Tool):
    name = "execute-bash-command"
    params_model = ExecuteBashCommandParams
    description = "Run a command with bash, zsh or fish"

    def _check(self, params: ExecuteBashCommandParams, context: PipelineContext) -> None:
        if params.quiet and params.output_assign:
            raise ToolError("Cannot use both 'quiet' and 'output-assign' options together")
        if params.shell and not shutil.which(params.shell, path=context.env.get("PATH")):
            raise ToolError(f"Shell '{params.shell}' is not installed on this system")
        if params.working_directory and not os.path.isdir(params.working_directory):
            raise ToolError(
                f"Working directory '{params.working_directory}' does not exist"
            )

    def _run_pty(self, argv: List[str], params: ExecuteBashCommandParams, context: PipelineContext) -> str:
        prompts = [Prompt(p.match, p.response) for p in params.interactive_prompts or []]
        try:
            output = run_with_pty(
                argv,
                env=context.env,
                cwd=params.working_directory,
                prompts=prompts,
                exit_on_non_zero=params.exit_on_non_zero_code,
                quiet=params.quiet,
            )
        except PtyError as e:
            raise ToolError(f"Command execution failed: {e}") from e
        return clean_tty(output)

    def _run(self, argv: List[str], params: ExecuteBashCommandParams, context: PipelineContext) -> str:
        capture = params.quiet or bool(params.output_assign)
        try:
            result = run_with_validation(
                argv,
                env=dict(context.env),
                cwd=params.working_directory,
                capture_output=capture,
                text=True,
                check=False,
            )
        except OSError as e:
            raise ToolError(f"Command execution failed: {e}") from e

        if capture and not params.quiet and result.stdout:
            click.echo(result.stdout, nl=False)

        if result.returncode != 0:
            if params.exit_on_non_zero_code:
                detail = (result.stderr or "").strip() if capture else ""
                raise ToolError(
                    f"Command execution failed: exit code {result.returncode}"
                    + (f": {detail}" if detail else "")
                )
            self.logger.warning(
                "Command exited with non-zero code %d, but continuing due to "
                "exit-on-non-zero-code: false",
                result.returncode,
            )
        return result.stdout or ""

    def execute(self, params: ExecuteBashCommandParams, context: PipelineContext) -> None:
        self._check(params, context)

        shell = params.shell or "bash"
        argv = [shell, "-c", params.command]
        interactive = bool(params.interactive_prompts)

        self.logger.debug("Executing command: %s", params.command.replace("\n", "\\n"))
        self.logger.debug("Shell: %s", shell)
        if params.working_directory:
            self.logger.debug("Working directory: %s", params.working_directory)

        if interactive:
            output = self._run_pty(argv, params, context)
        else:
            output = self._run(argv, params, context)

        key = output_key(params.output_assign)
        if key:
            lines = _output_lines(output)
            if len(lines) > 1:
                self.logger.warning(
                    "Command output is multiline (%d lines). Storing as "
                    "newline-separated string.",
                    len(lines),
                )
            context.set(key, "\n".join(lines))
            self.logger.debug('Command output stored in context as "%s"', key)

        if not params.quiet:
            success(
                self.logger,
                "Command executed successfully using %s%s",
                shell,
                " (PTY)" if interactive else "",
            )


__all__ = ["ExecuteBashCommand", "ExecuteBashCommandParams"]
