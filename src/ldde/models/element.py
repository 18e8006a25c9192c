"""Element descriptor models.

The concrete ``Element`` model is built at runtime by the tool registry
because its ``pipeline`` field depends on which tools are registered (see
:mod:`ldde.models.step`). :class:`ElementBase` carries everything that does
not depend on tools and is enough for dependency resolution.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from ..strings import normalize_keys


class ElementMetadata(BaseModel):
    """Optional ``metadata`` block of an element descriptor."""

    model_config = ConfigDict(extra="forbid")

    version: str | None = None
    dependencies: List[str] = Field(default_factory=list)


class ElementBase(BaseModel):
    """Named unit of work. Extra top-level keys are kept and become facts."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    metadata: ElementMetadata | None = None

    @property
    def dependencies(self) -> List[str]:
        return list(self.metadata.dependencies) if self.metadata else []

    @property
    def version(self) -> str | None:
        return self.metadata.version if self.metadata else None

    def facts_source(self) -> Dict[str, Any]:
        """Descriptor fields as written, minus ``pipeline``, keys in camelCase."""
        data = self.model_dump(exclude={"pipeline"}, exclude_unset=True)
        return normalize_keys(data)


__all__ = ["ElementBase", "ElementMetadata"]
