"""Name -> tool mapping and the schemas derived from it."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Type

from ..exceptions import ToolRegistrationError
from ..models import ElementBase, ToolParams, build_element_model, build_step_model
from .base import Tool


class ToolRegistry:
    """Registered tools, keyed by name. Read-only once a run starts."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}
        self._step_model: Optional[Any] = None
        self._element_model: Optional[Type[ElementBase]] = None

    def register(self, tool: Tool) -> Tool:
        name = getattr(tool, "name", "")
        if not isinstance(name, str) or not name:
            raise ToolRegistrationError(f"Tool {tool!r} has no name")
        params_model = getattr(tool, "params_model", None)
        if not (isinstance(params_model, type) and issubclass(params_model, ToolParams)):
            raise ToolRegistrationError(
                f'Tool "{name}" must define params_model as a ToolParams subclass'
            )
        if name in self._tools:
            raise ToolRegistrationError(f'Tool "{name}" is already registered')

        self._tools[name] = tool
        self._step_model = None
        self._element_model = None
        return tool

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name}") from None

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def step_model(self) -> Any:
        """Step schema discriminated on ``tool`` over the registered tools."""
        if self._step_model is None:
            if not self._tools:
                raise ToolRegistrationError("No tools registered")
            self._step_model = build_step_model(list(self._tools.values()))
        return self._step_model

    def element_model(self) -> Type[ElementBase]:
        if self._element_model is None:
            self._element_model = build_element_model(self.step_model())
        return self._element_model


def default_registry() -> ToolRegistry:
    """Registry holding the built-in tools."""
    from .clone_repository import CloneRepository
    from .execute_bash_command import ExecuteBashCommand
    from .install_binary import InstallBinary
    from .install_manpages import InstallManpages
    from .js_global_install import JsGlobalInstall
    from .safe_cleanup import SafeCleanup

    registry = ToolRegistry()
    registry.register(CloneRepository())
    registry.register(ExecuteBashCommand())
    registry.register(SafeCleanup())
    registry.register(InstallBinary())
    registry.register(InstallManpages())
    registry.register(JsGlobalInstall())
    return registry


__all__ = ["ToolRegistry", "default_registry"]
