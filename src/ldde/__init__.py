"""LDDE - declarative provisioning pipelines for developer machines."""

__version__ = "0.1.0"

from .context import PipelineContext
from .exceptions import (
    ConfigError,
    ContextError,
    DependencyError,
    ElementError,
    LddeError,
    RunFailedError,
    StepError,
    TemplateError,
    ToolError,
)
from .orchestrator import Orchestrator, RunReport, RunState, execute_element
from .resolver import DependencyResolver
from .tools import Tool, ToolRegistry, default_registry

__all__ = [
    "ConfigError",
    "ContextError",
    "DependencyError",
    "DependencyResolver",
    "ElementError",
    "LddeError",
    "Orchestrator",
    "PipelineContext",
    "RunFailedError",
    "RunReport",
    "RunState",
    "StepError",
    "TemplateError",
    "Tool",
    "ToolError",
    "ToolRegistry",
    "__version__",
    "default_registry",
    "execute_element",
]
