"""Per-element execution context.

Each element run gets a fresh :class:`PipelineContext` made of two disjoint
namespaces:

- Facts: read-only scalars flattened from the element's own descriptor
  (``name``, ``metadata.version``, any extra top-level keys). Built once and
  only ever exposed through accessors.
- Variables: a write-once tree populated by tools through ``set()``. Each
  dot-path may be written once; a path that equals, prefixes, or extends an
  existing variable or fact path is rejected.

Template strings reference either namespace with ``${{ path }}``. The
assignment marker ``$>{{ path }}`` is never expanded; tools parse it to learn
where to publish an output.
"""

from __future__ import annotations

import copy
import math
import re
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

from .exceptions import ContextError, TemplateError
from .strings import normalize_keys

KEY_PATTERN = re.compile(r"[a-z][a-zA-Z0-9]*")
TEMPLATE_PATTERN = re.compile(r"\$\{\{\s*([\w.]+)\s*\}\}", re.ASCII)
ASSIGNMENT_PATTERN = re.compile(r"\$>\{\{\s*([\w.]+)\s*\}\}", re.ASCII)

_MISSING = object()


def is_valid_key(segment: str) -> bool:
    """Return True if ``segment`` is a camelCase identifier."""
    return KEY_PATTERN.fullmatch(segment) is not None


def _check_path(path: str, error_cls: Type[Exception]) -> None:
    for part in path.split("."):
        if not is_valid_key(part):
            raise error_cls(
                f'Invalid key format: "{part}". Keys must be camelCase.', path
            )


def _is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, bool, int, float))


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def _flatten(value: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested mappings/lists into dot-paths, keeping primitive leaves."""
    flat: Dict[str, Any] = {}
    if isinstance(value, Mapping):
        items = [(str(k), v) for k, v in value.items()]
    else:
        items = [(str(i), v) for i, v in enumerate(value)]

    for key, item in items:
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(item, (Mapping, list, tuple)):
            flat.update(_flatten(item, path))
        elif _is_primitive(item):
            flat[path] = item
    return flat


def _traverse(data: Mapping[str, Any], path: str) -> Any:
    node: Any = data
    for part in path.split("."):
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        else:
            return _MISSING
    return node


def _overlap(path: str, existing: Iterable[str]) -> Optional[str]:
    """Return the first existing path equal to, above, or below ``path``."""
    for other in existing:
        if (
            other == path
            or other.startswith(path + ".")
            or path.startswith(other + ".")
        ):
            return other
    return None


class Facts:
    """Read-only scalars derived from an element descriptor."""

    def __init__(self, element_data: Mapping[str, Any]):
        normalized = normalize_keys(dict(element_data))
        normalized.pop("pipeline", None)
        self._data: Dict[str, Any] = _flatten(normalized)

    def keys(self) -> List[str]:
        return list(self._data)

    def get(self, path: str, default: Any = None) -> Any:
        return self._data.get(path, default)

    def __contains__(self, path: object) -> bool:
        return path in self._data

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)


class Variables:
    """Write-once dot-path tree filled in by tool executions."""

    def __init__(self, readonly_keys: Iterable[str]):
        self._data: Dict[str, Any] = {}
        self._assigned: List[str] = []
        self._readonly = frozenset(readonly_keys)

    def set(self, key: str, value: Any) -> None:
        _check_path(key, ContextError)

        conflict = _overlap(key, self._readonly)
        if conflict is not None:
            raise ContextError(
                f'Cannot set variable "{key}": conflicts with read-only value "{conflict}"',
                key,
            )

        existing = _overlap(key, self._assigned)
        if existing == key:
            raise ContextError(
                f'Duplicate assignment: variable "{key}" is already set', key
            )
        if existing is not None:
            raise ContextError(
                f'Cannot set variable "{key}": overlaps existing variable "{existing}"',
                key,
            )

        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
        self._assigned.append(key)

    def get(self, key: str, default: Any = None) -> Any:
        _check_path(key, ContextError)
        value = _traverse(self._data, key)
        return default if value is _MISSING else value

    def has(self, key: str) -> bool:
        _check_path(key, ContextError)
        return _traverse(self._data, key) is not _MISSING

    @property
    def assigned_keys(self) -> List[str]:
        return list(self._assigned)

    @property
    def data(self) -> Mapping[str, Any]:
        return MappingProxyType(self._data)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


def has_template_expressions(text: str) -> bool:
    return TEMPLATE_PATTERN.search(text) is not None


def extract_variable_paths(template: str) -> List[str]:
    """List every ``${{ path }}`` reference in order of appearance."""
    return TEMPLATE_PATTERN.findall(template)


def is_assignment_expression(text: str) -> bool:
    return ASSIGNMENT_PATTERN.fullmatch(text) is not None


def parse_assignment_expression(text: str) -> Optional[str]:
    """Return the variable path named by ``$>{{ path }}``, or None."""
    match = ASSIGNMENT_PATTERN.fullmatch(text)
    return match.group(1) if match else None


def process_template(
    template: str,
    facts: Mapping[str, Any],
    variables: Mapping[str, Any],
) -> str:
    """Expand every ``${{ path }}`` in ``template``.

    Args:
        template: String that may contain template expressions
        facts: Flat read-only mapping (dot-path keys)
        variables: Nested variables tree

    Returns:
        The expanded string, or ``template`` unchanged when it is exactly an
        assignment expression.

    Raises:
        TemplateError: On invalid paths, undefined values, non-primitive
            values, or a facts/variables key collision.
    """
    if is_assignment_expression(template):
        return template

    conflicts = [key for key in variables if key in facts]
    if conflicts:
        raise TemplateError(
            "Variables conflict with read-only keys: " + ", ".join(conflicts)
        )

    merged: Dict[str, Any] = {**facts, **variables}

    def substitute(match: "re.Match[str]") -> str:
        path = match.group(1)
        _check_path(path, TemplateError)

        value = merged[path] if path in merged else _traverse(merged, path)
        if value is _MISSING:
            raise TemplateError(f'Variable "{path}" is undefined in context', path)
        if not _is_primitive(value):
            raise TemplateError(
                f'Cannot expand non-primitive value for "{path}". '
                "Only primitive values are allowed in templates.",
                path,
            )
        return _stringify(value)

    return TEMPLATE_PATTERN.sub(substitute, template)


def process_object_template(
    value: Any,
    facts: Mapping[str, Any],
    variables: Mapping[str, Any],
) -> Any:
    """Apply :func:`process_template` to every string inside ``value``."""
    if isinstance(value, str):
        return process_template(value, facts, variables)
    if isinstance(value, (list, tuple)):
        return [process_object_template(item, facts, variables) for item in value]
    if isinstance(value, Mapping):
        return {
            key: process_object_template(item, facts, variables)
            for key, item in value.items()
        }
    return value


class PipelineContext:
    """Facts, variables, and the subprocess environment for one element run."""

    def __init__(
        self,
        element_data: Mapping[str, Any],
        env: Optional[Mapping[str, str]] = None,
    ):
        self._facts = Facts(element_data)
        self._variables = Variables(self._facts.keys())
        self.env: Mapping[str, str] = MappingProxyType(dict(env or {}))

    def set(self, key: str, value: Any) -> None:
        self._variables.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        return self._variables.get(key, default)

    def has(self, key: str) -> bool:
        return self._variables.has(key)

    def resolve(self, path: str, default: Any = None) -> Any:
        return self._variables.get(path, default)

    def get_fact(self, path: str, default: Any = None) -> Any:
        return self._facts.get(path, default)

    @property
    def assigned_keys(self) -> List[str]:
        return self._variables.assigned_keys

    def facts_snapshot(self) -> Dict[str, Any]:
        return self._facts.snapshot()

    def variables_snapshot(self) -> Dict[str, Any]:
        return self._variables.snapshot()

    def process_template(self, template: str) -> str:
        return process_template(
            template, self._facts.snapshot(), self._variables.data
        )

    def process_object_template(self, value: Any) -> Any:
        return process_object_template(
            value, self._facts.snapshot(), self._variables.data
        )


__all__ = [
    "Facts",
    "PipelineContext",
    "Variables",
    "extract_variable_paths",
    "has_template_expressions",
    "is_assignment_expression",
    "is_valid_key",
    "parse_assignment_expression",
    "process_object_template",
    "process_template",
]
