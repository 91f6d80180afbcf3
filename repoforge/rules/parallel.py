"""Bounded-concurrency processing helpers.

Both helpers return results in input order regardless of completion
order: every result is written to the slot of its item's index.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from ..audit_logging import get_logger

logger = get_logger()

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_CONCURRENCY = 10

Processor = Callable[[T], "Awaitable[R] | R"]


class ParallelProcessingError(RuntimeError):
    """Raised after all items settled when one or more processors failed.

    Attributes:
        results: Index-aligned results; failed slots hold None.
        errors: Mapping of item index to the exception it raised.
    """

    def __init__(self, results: list[Any], errors: dict[int, BaseException]):
        self.results = results
        self.errors = errors
        first = min(errors)
        super().__init__(
            f"{len(errors)} of {len(results)} item(s) failed; "
            f"first failure at index {first}: {errors[first]!r}"
        )


async def _call(processor: Callable[[T], Any], item: T) -> Any:
    result = processor(item)
    if inspect.isawaitable(result):
        result = await result
    return result


async def process_in_parallel(
    items: Sequence[T],
    processor: Processor,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> list[R]:
    """Process items with at most ``max_concurrency`` operations in flight.

    A fixed pool of workers pulls ``(index, item)`` pairs from a queue and
    stores each result at its index. Workers keep going after a failure,
    so every item is attempted before this returns.

    Args:
        items: Items to process.
        processor: Coroutine function (or plain function) applied per item.
        max_concurrency: Maximum number of concurrent operations.

    Returns:
        Results in the same order as ``items``.

    Raises:
        ValueError: If max_concurrency is less than 1.
        ParallelProcessingError: If any processor raised.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    results: list[Any] = [None] * len(items)
    errors: dict[int, BaseException] = {}
    if not items:
        return results

    queue: asyncio.Queue[tuple[int, T]] = asyncio.Queue()
    for index, item in enumerate(items):
        queue.put_nowait((index, item))

    async def worker() -> None:
        while True:
            try:
                index, item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await _call(processor, item)
            except Exception as e:
                errors[index] = e
            finally:
                queue.task_done()

    worker_count = min(max_concurrency, len(items))
    await asyncio.gather(*(worker() for _ in range(worker_count)))

    if errors:
        logger.debug(f"{len(errors)} item(s) failed during parallel processing")
        raise ParallelProcessingError(results, errors)
    return results


async def process_in_batches(
    items: Sequence[T],
    processor: Processor,
    batch_size: int = DEFAULT_MAX_CONCURRENCY,
) -> list[R]:
    """Process items in fixed-size waves.

    Each batch runs concurrently and must finish before the next starts.

    Args:
        items: Items to process.
        processor: Coroutine function (or plain function) applied per item.
        batch_size: Number of items per wave.

    Returns:
        Results in the same order as ``items``.

    Raises:
        ValueError: If batch_size is less than 1.
        ParallelProcessingError: If any processor raised.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    results: list[Any] = []
    errors: dict[int, BaseException] = {}

    for start in range(0, len(items), batch_size):
        batch = items[start : start + batch_size]
        outcomes = await asyncio.gather(
            *(_call(processor, item) for item in batch), return_exceptions=True
        )
        for offset, outcome in enumerate(outcomes):
            if isinstance(outcome, Exception):
                errors[start + offset] = outcome
                results.append(None)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

    if errors:
        raise ParallelProcessingError(results, errors)
    return results


__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "ParallelProcessingError",
    "process_in_batches",
    "process_in_parallel",
]
