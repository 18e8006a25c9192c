"""Error hierarchy shared across the engine, tools, and CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .orchestrator import RunReport


class LddeError(Exception):
    """Base class for every error raised by ldde."""


class ConfigError(LddeError):
    """Workspace, descriptor, or element-selection problem."""


class ElementValidationError(ConfigError):
    """An element descriptor does not match its schema."""

    def __init__(self, path: str, issues: Sequence[Tuple[str, str]]):
        self.path = path
        self.issues = list(issues)
        lines = [f"Invalid element file: {path}"]
        for i, (location, message) in enumerate(self.issues, start=1):
            lines.append(f"  {i}. {location}: {message}")
        super().__init__("\n".join(lines))


class DependencyError(LddeError):
    """Duplicate, missing, self, or circular element dependency."""

    def __init__(self, message: str, cycle: Optional[List[str]] = None):
        super().__init__(message)
        self.cycle = cycle


class ContextError(LddeError):
    """Invalid, duplicate, or read-only variable write."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class TemplateError(LddeError):
    """A template expression could not be expanded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ToolError(LddeError):
    """A tool failed while executing a step."""


class ToolRegistrationError(LddeError):
    """A tool could not be added to the registry."""


class PtyError(ToolError):
    """Pseudo-terminal spawn failure or fatal non-zero exit."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class ElementError(LddeError):
    """An element failed; wraps the underlying cause."""

    def __init__(self, element: str, cause: BaseException, message: Optional[str] = None):
        self.element = element
        self.cause = cause
        super().__init__(
            message or f'Element "{element}" failed before its first step: {cause}'
        )


class StepError(ElementError):
    """A pipeline step failed; wraps the underlying cause."""

    def __init__(self, element: str, index: int, tool: str, cause: BaseException):
        self.index = index
        self.tool = tool
        super().__init__(
            element,
            cause,
            f'Element "{element}" failed at step {index} ({tool}): {cause}',
        )


class PoolError(LddeError):
    """One or more pool tasks raised."""

    def __init__(self, errors: Sequence[Tuple[int, BaseException]]):
        self.errors = sorted(errors, key=lambda item: item[0])
        summary = "; ".join(f"task {i}: {exc}" for i, exc in self.errors)
        super().__init__(f"{len(self.errors)} task(s) failed: {summary}")


class RunFailedError(LddeError):
    """At least one element failed during a run."""

    def __init__(self, report: "RunReport"):
        self.report = report
        names = ", ".join(report.failed) or "none"
        super().__init__(f"Run aborted; failed element(s): {names}")


__all__ = [
    "ConfigError",
    "ContextError",
    "DependencyError",
    "ElementError",
    "ElementValidationError",
    "LddeError",
    "PoolError",
    "PtyError",
    "RunFailedError",
    "StepError",
    "TemplateError",
    "ToolError",
    "ToolRegistrationError",
]
