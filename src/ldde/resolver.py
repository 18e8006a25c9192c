"""Dependency graph over elements.

Nodes are element names; an edge ``dep -> dependent`` exists for every name in
an element's ``metadata.dependencies``. Validation happens at construction so
a resolver that exists is always over a well-formed (but possibly cyclic)
graph. Cycles are reported when an order is requested.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Generic, List, Optional, Sequence, TypeVar

from .exceptions import DependencyError
from .models import ElementBase

E = TypeVar("E", bound=ElementBase)


class DependencyResolver(Generic[E]):
    """Validate element dependencies and compute a deterministic run order."""

    def __init__(self, elements: Sequence[E]):
        self._elements: List[E] = list(elements)
        self._by_name: Dict[str, E] = {}
        # dep -> dependents, in declaration order
        self._graph: Dict[str, List[str]] = {}
        self._in_degree: Dict[str, int] = {}
        self._build()

    def _build(self) -> None:
        for element in self._elements:
            if element.name in self._by_name:
                raise DependencyError(f"Duplicate element name: {element.name}")
            self._by_name[element.name] = element
            self._graph[element.name] = []
            self._in_degree[element.name] = 0

        for element in self._elements:
            for dep in element.dependencies:
                if dep == element.name:
                    raise DependencyError(
                        f'Element "{element.name}" cannot depend on itself'
                    )
                if dep not in self._by_name:
                    raise DependencyError(
                        f'Element "{element.name}" depends on "{dep}", '
                        "which does not exist"
                    )
                self._graph[dep].append(element.name)
                self._in_degree[element.name] += 1

    @property
    def elements(self) -> List[E]:
        return list(self._elements)

    def get(self, name: str) -> E:
        return self._by_name[name]

    def dependents(self, name: str) -> List[str]:
        """Names of elements that list ``name`` as a dependency."""
        return list(self._graph[name])

    def resolve_execution_order(self) -> List[E]:
        """Return elements in topological order (Kahn's algorithm).

        Nodes that become ready at the same time are processed in the order
        they were discovered, so the result is stable for a given input.

        Raises:
            DependencyError: If the graph contains a cycle. The error's
                ``cycle`` attribute holds the loop, first == last.
        """
        in_degree = dict(self._in_degree)
        queue = deque(name for name, degree in in_degree.items() if degree == 0)
        order: List[E] = []

        while queue:
            current = queue.popleft()
            order.append(self._by_name[current])
            for dependent in self._graph[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(order) != len(self._elements):
            cycle = self.find_cycle() or []
            raise DependencyError(
                "Circular dependency detected: " + " → ".join(cycle), cycle=cycle
            )
        return order

    def find_cycle(self) -> Optional[List[str]]:
        """Return the first dependency loop found by DFS, or None.

        The path follows "depends on" edges: in ``[a, b, a]`` element ``a``
        depends on ``b`` and ``b`` depends on ``a``.
        """
        visited: set = set()
        on_stack: set = set()
        path: List[str] = []

        def visit(name: str) -> Optional[List[str]]:
            visited.add(name)
            on_stack.add(name)
            path.append(name)
            for dep in self._by_name[name].dependencies:
                if dep in on_stack:
                    start = path.index(dep)
                    return path[start:] + [dep]
                if dep not in visited:
                    found = visit(dep)
                    if found:
                        return found
            on_stack.discard(name)
            path.pop()
            return None

        for element in self._elements:
            if element.name not in visited:
                found = visit(element.name)
                if found:
                    return found
        return None

    def get_independent_elements(self) -> List[E]:
        """Elements that declare no dependencies, in input order."""
        return [e for e in self._elements if not e.dependencies]


__all__ = ["DependencyResolver"]
