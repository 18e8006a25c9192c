"""Element descriptor loading and selection."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Set, Tuple

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError, ElementValidationError
from .models import ElementBase
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _issue_location(loc: Tuple) -> str:
    return "/" + "/".join(str(part) for part in loc) if loc else "/"


def read_descriptor(path: Path) -> dict:
    """Parse one YAML descriptor; it must be a mapping."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file: {path}\n  {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read element file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid element file: {path} (expected a mapping, got {type(data).__name__})"
        )
    return data


def load_elements(files: Iterable[Path], registry: ToolRegistry) -> List[ElementBase]:
    """Parse and validate element descriptors, in file order.

    Raises:
        ConfigError: On unreadable or non-mapping YAML
        ElementValidationError: When a descriptor fails schema validation
    """
    model = registry.element_model()
    elements: List[ElementBase] = []
    for path in files:
        data = read_descriptor(path)
        try:
            element = model.model_validate(data)
        except ValidationError as e:
            issues = [(_issue_location(err["loc"]), err["msg"]) for err in e.errors()]
            raise ElementValidationError(str(path), issues) from e
        logger.debug("Loaded element %s from %s", element.name, path)
        elements.append(element)
    return elements


def select_elements(
    elements: Sequence[ElementBase], names: Sequence[str]
) -> Tuple[List[ElementBase], List[str]]:
    """Keep the requested elements plus everything they transitively need.

    Returns:
        (selected elements in original order, names pulled in as dependencies)

    Raises:
        ConfigError: If a requested or referenced element does not exist
    """
    lookup: Dict[str, ElementBase] = {e.name: e for e in elements}
    missing = [name for name in names if name not in lookup]
    if missing:
        raise ConfigError(
            "Requested element(s) not found: "
            + ", ".join(f'"{name}"' for name in missing)
        )

    required: Set[str] = set()
    stack = list(names)
    while stack:
        current = stack.pop()
        if current in required:
            continue
        required.add(current)
        for dep in lookup[current].dependencies:
            if dep not in lookup:
                raise ConfigError(
                    f'Element "{current}" depends on "{dep}" which was not found.'
                )
            if dep not in required:
                stack.append(dep)

    selected = [e for e in elements if e.name in required]
    extra = [e.name for e in selected if e.name not in names]
    return selected, extra


__all__ = ["load_elements", "read_descriptor", "select_elements"]
