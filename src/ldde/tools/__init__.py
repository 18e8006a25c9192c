"""Tool contract, registry, and the built-in tools."""

from .base import Tool, output_key
from .clone_repository import CloneRepository
from .execute_bash_command import ExecuteBashCommand
from .install_binary import InstallBinary
from .install_manpages import InstallManpages
from .js_global_install import JsGlobalInstall
from .registry import ToolRegistry, default_registry
from .safe_cleanup import SafeCleanup

__all__ = [
    "CloneRepository",
    "ExecuteBashCommand",
    "InstallBinary",
    "InstallManpages",
    "JsGlobalInstall",
    "SafeCleanup",
    "Tool",
    "ToolRegistry",
    "default_registry",
    "output_key",
]
