"""clone-repository: clone a git repository into a fresh temp directory."""

from __future__ import annotations

import shutil
import tempfile
from typing import List

from ..context import PipelineContext
from ..exceptions import ToolError
from ..models import ToolParams
from ..process_utils import run_captured, stderr_or_stdout
from ..strings import truncate_github_url
from .base import Tool, output_key

DEFAULT_OUTPUT = "ctx.cloneRepositoryOutput"


class CloneRepositoryParams(ToolParams):
    url: str
    branch: str | None = None
    commit_sha: str | None = None
    output_assign: str | None = None


class CloneRepository(Tool):
    """Clone ``url`` and publish the checkout path.

    With ``commit-sha`` the clone is shallow and the commit is fetched and
    checked out explicitly, so it need not be the branch tip.
    """

    name = "clone-repository"
    params_model = CloneRepositoryParams
    description = "Clone a git repository into a temporary directory"

    def _clone_command(self, params: CloneRepositoryParams, target: str) -> List[str]:
        cmd = ["git", "clone"]
        if params.commit_sha:
            cmd += ["--depth", "1"]
        if params.branch:
            cmd += ["--branch", params.branch, "--single-branch"]
        return cmd + [params.url, target]

    def _git(self, cmd: List[str], context: PipelineContext, what: str) -> None:
        result = run_captured(cmd, context.env)
        if result.returncode != 0:
            raise ToolError(f"Git {what} failed: {stderr_or_stdout(result)}")

    def execute(self, params: CloneRepositoryParams, context: PipelineContext) -> None:
        clone_dir = tempfile.mkdtemp(
            prefix="ldde-clone-", dir=context.env.get("TMPDIR") or None
        )
        self.logger.debug("Cloning repository: %s", truncate_github_url(params.url))
        self.logger.debug("Target directory: %s", clone_dir)
        if params.branch:
            self.logger.debug("Branch: %s", params.branch)

        try:
            self._git(self._clone_command(params, clone_dir), context, "clone")
            if params.commit_sha:
                self.logger.debug("Checking out commit: %s", params.commit_sha)
                self._git(
                    ["git", "-C", clone_dir, "fetch", "--depth", "1", "origin", params.commit_sha],
                    context,
                    "fetch",
                )
                self._git(
                    ["git", "-C", clone_dir, "checkout", "--quiet", params.commit_sha],
                    context,
                    "checkout",
                )
        except (ToolError, OSError) as e:
            try:
                shutil.rmtree(clone_dir)
            except OSError as cleanup_error:
                self.logger.error(
                    "Failed to clean up directory %s: %s", clone_dir, cleanup_error
                )
            if isinstance(e, ToolError):
                raise
            raise ToolError(f"Clone repository failed: {e}") from e

        key = output_key(params.output_assign, DEFAULT_OUTPUT)
        context.set(key, clone_dir)
        self.logger.debug('Repository path stored in context as "%s": %s', key, clone_dir)


__all__ = ["CloneRepository", "CloneRepositoryParams"]
