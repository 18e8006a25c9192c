"""Tool contract.

A tool is a named unit that validates a step's ``with`` block through its
``params_model`` and performs side effects in :meth:`Tool.execute`. Outputs
are published to later steps with ``context.set``.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, ClassVar, Dict, Optional, Type

from ..context import PipelineContext, parse_assignment_expression
from ..models import ToolParams


class Tool(abc.ABC):
    """Base class for every tool registered with a :class:`ToolRegistry`."""

    name: ClassVar[str] = ""
    params_model: ClassVar[Type[ToolParams]] = ToolParams
    description: ClassVar[str] = ""

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(f"ldde.tools.{self.name}")

    def schema(self) -> Dict[str, Any]:
        """JSON schema of the ``with`` block, using descriptor key names."""
        return self.params_model.model_json_schema(by_alias=True)

    @abc.abstractmethod
    def execute(self, params: Any, context: PipelineContext) -> None:
        """Run the tool. Raise on failure; return nothing."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


def output_key(value: Optional[str], default: Optional[str] = None) -> Optional[str]:
    """Variables path named by an ``output-assign`` value.

    Accepts ``$>{{ path }}`` or a bare path; falls back to ``default``.
    """
    if not value:
        return default
    value = value.strip()
    return parse_assignment_expression(value) or value


__all__ = ["Tool", "output_key"]
