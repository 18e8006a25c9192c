"""Base model for tool parameters."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def to_kebab(name: str) -> str:
    """Map a snake_case attribute to its hyphenated descriptor key."""
    return name.replace("_", "-")


class ToolParams(BaseModel):
    """Parameters of a single tool's ``with`` block.

    Unknown keys are rejected. Attributes are snake_case in Python and
    hyphenated in descriptors (``output_assign`` <-> ``output-assign``).
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_kebab,
        populate_by_name=True,
    )


class InteractivePrompt(ToolParams):
    """One ``{match, response}`` pair for pseudo-terminal automation."""

    match: str
    response: str


__all__ = ["InteractivePrompt", "ToolParams", "to_kebab"]
