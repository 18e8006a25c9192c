"""Runtime-built step and element schemas.

A step is ``{tool: <name>, with: <params>}``. The accepted ``tool`` values are
exactly the registered tool names, and ``with`` is validated only against
the matching tool's params model (a pydantic discriminated union).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Annotated, Any, List, Literal, Sequence, Type, Union

from pydantic import ConfigDict, Field, create_model

from .element import ElementBase

if TYPE_CHECKING:
    from ..tools.base import Tool


def _class_name(tool_name: str) -> str:
    parts = re.split(r"[^A-Za-z0-9]+", tool_name)
    return "".join(part[:1].upper() + part[1:] for part in parts if part) + "Step"


def build_step_model(tools: Sequence["Tool"]) -> Any:
    """Return the step type for ``tools``.

    With several tools this is an ``Annotated`` union discriminated on
    ``tool``; with exactly one it is that tool's step model.
    """
    if not tools:
        raise ValueError("At least one tool is required to build a step model")

    variants = [
        create_model(
            _class_name(tool.name),
            __config__=ConfigDict(extra="forbid", populate_by_name=True),
            tool=(Literal[tool.name], ...),
            with_=(tool.params_model, Field(alias="with")),
        )
        for tool in tools
    ]
    if len(variants) == 1:
        return variants[0]
    return Annotated[Union[tuple(variants)], Field(discriminator="tool")]


def build_element_model(step_model: Any) -> Type[ElementBase]:
    """Element model whose ``pipeline`` is a non-empty list of ``step_model``."""
    return create_model(
        "Element",
        __base__=ElementBase,
        pipeline=(List[step_model], Field(min_length=1)),
    )


__all__ = ["build_element_model", "build_step_model"]
