"""Shared state passed between the ``ldde`` group and its commands."""

from typing import Callable, Dict, Mapping, Optional

import click

from ..tools.registry import ToolRegistry, default_registry


class LddeContext:
    def __init__(self, registry_factory: Callable[[], ToolRegistry] = default_registry):
        self.root_option: Optional[str] = None
        self.debug = False
        self.environ: Mapping[str, str] = {}
        self.env: Dict[str, str] = {}
        self.registry_factory = registry_factory


pass_context = click.make_pass_decorator(LddeContext, ensure=True)
