"""Fixed-size worker pool over a list of callables.

``run_pool`` submits ``min(concurrency, len(tasks))`` claim loops to a
:class:`~concurrent.futures.ThreadPoolExecutor`. Each worker
claims the next unclaimed index from one shared counter, runs that task to
completion, and stores its result at the same index, so results line up with
``tasks`` whatever the completion order.

Failure policy:

- ``fail_fast=True``: after the first failure no new task is claimed. Tasks
  already running finish normally.
- ``fail_fast=False``: every task runs; all failures are collected.

Either way the call raises :class:`~ldde.exceptions.PoolError` listing every
``(index, exception)`` once all workers have stopped.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .exceptions import PoolError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_pool(
    tasks: Sequence[Callable[[], T]],
    concurrency: int,
    *,
    fail_fast: bool = True,
) -> List[Optional[T]]:
    """Run ``tasks`` with at most ``concurrency`` in flight.

    Args:
        tasks: Zero-argument callables
        concurrency: Maximum number of workers, must be >= 1
        fail_fast: Stop claiming new tasks after the first failure

    Returns:
        Results in task order. Unclaimed tasks (fail-fast only) leave None,
        but in that case PoolError is raised instead of returning.

    Raises:
        ValueError: If concurrency is not a positive integer
        PoolError: If any task raised
    """
    if (
        isinstance(concurrency, bool)
        or not isinstance(concurrency, int)
        or concurrency < 1
    ):
        raise ValueError(f"concurrency must be a positive integer, got {concurrency!r}")

    results: List[Optional[T]] = [None] * len(tasks)
    if not tasks:
        return results

    errors: List[Tuple[int, BaseException]] = []
    lock = threading.Lock()
    cancelled = threading.Event()
    next_index = 0

    def claim() -> Optional[int]:
        nonlocal next_index
        with lock:
            if cancelled.is_set() or next_index >= len(tasks):
                return None
            index = next_index
            next_index += 1
            return index

    def worker() -> None:
        while True:
            index = claim()
            if index is None:
                return
            try:
                results[index] = tasks[index]()
            except Exception as exc:
                logger.debug("Pool task %d failed: %s", index, exc)
                with lock:
                    errors.append((index, exc))
                if fail_fast:
                    cancelled.set()

    workers = min(concurrency, len(tasks))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ldde-pool") as executor:
        futures = [executor.submit(worker) for _ in range(workers)]
        for future in futures:
            future.result()

    if errors:
        error = PoolError(errors)
        raise error from error.errors[0][1]
    return results


__all__ = ["run_pool"]
