"""Pydantic models for element descriptors and tool parameters."""

from .element import ElementBase, ElementMetadata
from .params import InteractivePrompt, ToolParams, to_kebab
from .step import build_element_model, build_step_model

__all__ = [
    "ElementBase",
    "ElementMetadata",
    "InteractivePrompt",
    "ToolParams",
    "build_element_model",
    "build_step_model",
    "to_kebab",
]
