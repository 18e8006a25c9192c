"""Run elements: resolve the graph, schedule, execute steps.

A run moves through ``LOADED -> GRAPH_RESOLVED -> SCHEDULED -> EXECUTING``
and ends ``COMPLETED`` or ``ABORTED``. Independent elements (no declared
dependencies) go through the worker pool; everything else runs one at a time
in topological order.

Each element gets its own :class:`PipelineContext`; nothing carries over
between elements except the storage directory injected at start.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Sequence, Union

from .context import PipelineContext
from .exceptions import (
    DependencyError,
    ElementError,
    PoolError,
    RunFailedError,
    StepError,
)
from .home import DEFAULT_CONCURRENCY
from .models import ElementBase
from .pool import run_pool
from .resolver import DependencyResolver
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

STORAGE_DIRECTORY_KEY = "ctx.storageDirectory"


class RunState(enum.Enum):
    LOADED = "loaded"
    GRAPH_RESOLVED = "graph-resolved"
    SCHEDULED = "scheduled"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class RunReport:
    """What happened during a run."""

    order: List[str] = field(default_factory=list)
    independent: List[str] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)
    failed: Dict[str, BaseException] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    state: RunState = RunState.LOADED

    @property
    def ok(self) -> bool:
        return self.state is RunState.COMPLETED


def execute_element(
    element: ElementBase,
    registry: ToolRegistry,
    *,
    storage_directory: Union[str, Path],
    env: Mapping[str, str],
) -> PipelineContext:
    """Run every step of ``element`` in order against a fresh context.

    Each step's ``with`` block is template-expanded against the context as it
    stands right before the step, then re-validated by the tool's params
    model and dispatched.

    Raises:
        ElementError: If the context cannot be built or seeded
        StepError: Wrapping whatever made a step fail (1-based index)
    """
    version = f" (v{element.version})" if element.version else ""
    logger.info("Processing element: %s%s", element.name, version)

    try:
        context = PipelineContext(element.facts_source(), env=env)
        context.set(STORAGE_DIRECTORY_KEY, str(storage_directory))
    except Exception as e:
        raise ElementError(element.name, e) from e

    for index, step in enumerate(element.pipeline, start=1):
        logger.debug("Step %d: %s", index, step.tool)
        try:
            tool = registry.get(step.tool)
            raw = step.with_.model_dump(by_alias=True, exclude_unset=True)
            expanded = context.process_object_template(raw)
            params = tool.params_model.model_validate(expanded)
            tool.execute(params, context)
        except Exception as e:
            logger.error("Step %d failed: %s", index, e)
            raise StepError(element.name, index, step.tool, e) from e
        logger.debug("Step %d completed successfully", index)

    logger.debug('Element "%s" completed successfully', element.name)
    logger.debug("Context variables created: [%s]", ", ".join(context.assigned_keys))
    return context


class Orchestrator:
    """Execute a set of loaded elements as one run.

    Failure policy:
        - default (fail-fast): after the first failed element no new element
          starts; elements already running finish.
        - ``keep_going``: every element whose dependencies all completed
          still runs; the rest are skipped.

    A run with any failure ends ``ABORTED`` and raises RunFailedError.
    """

    def __init__(
        self,
        elements: Sequence[ElementBase],
        registry: ToolRegistry,
        *,
        storage_directory: Union[str, Path],
        env: Mapping[str, str],
        concurrency: int = DEFAULT_CONCURRENCY,
        keep_going: bool = False,
    ):
        self.elements = list(elements)
        self.registry = registry
        self.storage_directory = storage_directory
        self.env = dict(env)
        self.concurrency = concurrency
        self.keep_going = keep_going
        self.report = RunReport()
        self._lock = threading.Lock()

    @property
    def state(self) -> RunState:
        return self.report.state

    def _transition(self, state: RunState) -> None:
        logger.debug("Run state: %s -> %s", self.report.state.value, state.value)
        self.report.state = state

    def _attempt(self, element: ElementBase) -> bool:
        try:
            execute_element(
                element,
                self.registry,
                storage_directory=self.storage_directory,
                env=self.env,
            )
        except Exception as e:
            error = e
            if not isinstance(error, ElementError):
                error = ElementError(element.name, e, f'Element "{element.name}" failed: {e}')
                error.__cause__ = e
            logger.error("%s", error)
            with self._lock:
                self.report.failed[element.name] = error
            return False
        with self._lock:
            self.report.completed.append(element.name)
        return True

    def _pool_task(self, element: ElementBase) -> Callable[[], None]:
        def task() -> None:
            if not self._attempt(element):
                raise self.report.failed[element.name]

        return task

    def _run_independent(self, independent: List[ElementBase]) -> None:
        logger.debug(
            "Executing independent elements in parallel: %s",
            ", ".join(e.name for e in independent),
        )
        try:
            run_pool(
                [self._pool_task(e) for e in independent],
                self.concurrency,
                fail_fast=not self.keep_going,
            )
        except PoolError as e:
            logger.debug("%d independent element(s) failed", len(e.errors))

        for element in independent:
            if element.name not in self.report.completed and element.name not in self.report.failed:
                self.report.skipped.append(element.name)

    def _run_sequential(self, order: List[ElementBase], independent_names: set) -> None:
        for element in order:
            if element.name in independent_names:
                continue
            if self.report.failed and not self.keep_going:
                self.report.skipped.append(element.name)
                continue
            blocked = [d for d in element.dependencies if d not in self.report.completed]
            if blocked:
                logger.warning(
                    'Skipping element "%s": dependency %s did not complete',
                    element.name,
                    ", ".join(f'"{d}"' for d in blocked),
                )
                self.report.skipped.append(element.name)
                continue
            self._attempt(element)

    def run(self) -> RunReport:
        """Execute the run.

        Raises:
            DependencyError: Before anything runs, if the graph is invalid
            RunFailedError: If any element failed
        """
        try:
            resolver = DependencyResolver(self.elements)
            order = resolver.resolve_execution_order()
        except DependencyError:
            self._transition(RunState.ABORTED)
            raise
        independent = resolver.get_independent_elements()

        self.report.order = [e.name for e in order]
        self.report.independent = [e.name for e in independent]
        self._transition(RunState.GRAPH_RESOLVED)
        logger.debug("Resolved execution order: %s", " → ".join(self.report.order))

        self._transition(RunState.SCHEDULED)
        self._transition(RunState.EXECUTING)
        if independent:
            self._run_independent(independent)
        self._run_sequential(order, set(self.report.independent))

        if self.report.failed:
            self._transition(RunState.ABORTED)
            raise RunFailedError(self.report)
        self._transition(RunState.COMPLETED)
        return self.report


__all__ = [
    "Orchestrator",
    "RunReport",
    "RunState",
    "STORAGE_DIRECTORY_KEY",
    "execute_element",
]
