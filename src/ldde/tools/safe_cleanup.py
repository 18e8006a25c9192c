"""safe-cleanup: move paths to the system trash instead of deleting them."""

from __future__ import annotations

import os
from typing import List

from pydantic import Field
from send2trash import send2trash

from ..context import PipelineContext
from ..exceptions import ToolError
from ..log import success
from ..models import ToolParams
from .base import Tool


class SafeCleanupParams(ToolParams):
    paths: List[str] = Field(min_length=1)
    quiet: bool = False


class SafeCleanup(Tool):
    name = "safe-cleanup"
    params_model = SafeCleanupParams
    description = "Move files or directories to the system trash"

    def execute(self, params: SafeCleanupParams, context: PipelineContext) -> None:
        quiet = params.quiet
        existing = [path for path in params.paths if os.path.lexists(path)]
        missing = len(params.paths) - len(existing)

        if not quiet:
            self.logger.debug("Safe cleanup requested for %d path(s)", len(params.paths))
            if missing:
                self.logger.debug("Skipped %d non-existent path(s)", missing)

        if not existing:
            if not quiet:
                self.logger.debug("No paths to clean up")
            return

        for path in existing:
            try:
                send2trash(path)
            except OSError as e:
                raise ToolError(f"Safe cleanup failed: {e}") from e
            if not quiet:
                self.logger.debug("Cleaned: %s", path)

        if not quiet:
            success(
                self.logger,
                "Successfully moved %d path(s) to system trash",
                len(existing),
            )


__all__ = ["SafeCleanup", "SafeCleanupParams"]
