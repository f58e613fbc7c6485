"""
Bounded concurrent execution of independent blocking queries.

A fixed number of worker coroutines pull items from a pending queue and run
the blocking task function in a thread pool of the same size, so at most K
remote calls are in flight and a freed slot is reused immediately. Outcomes
are pushed to a result queue that a :class:`ResultCollector` drains while the
workers are still running.

The first failure aborts the batch: workers stop pulling new items, in-flight
calls are allowed to finish, everything already completed is drained, and the
caller gets a :class:`BatchFailedError`.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

from .collector import BATCH_DONE, ResultCollector, TaskOutcome
from .correlation import get_run_id

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BoundedExecutor:  # pylint: disable=too-few-public-methods
    """
    Worker pool executing one blocking call per item.

    Parameters
    ----------
    max_concurrent : int, optional
        Maximum number of tasks in flight (K >= 1). ``None`` runs one worker
        per item, for small inputs bounded by nature (e.g. accounts of an
        organization).
    name : str
        Batch name used in logs and failure reports

    Attributes
    ----------
    peak_active : int
        Highest number of tasks observed in flight during the last run
    collector : ResultCollector, optional
        Collector of the current or last run; it receives outcomes while
        workers are still executing
    """

    def __init__(self, max_concurrent: Optional[int] = None, name: str = "batch"):
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self.max_concurrent = max_concurrent
        self.name = name
        self.peak_active = 0
        self.collector: Optional[ResultCollector[Any]] = None
        self._active = 0

    def concurrency_for(self, count: int) -> int:
        """Return the number of workers used for a batch of ``count`` items."""
        limit = self.max_concurrent if self.max_concurrent is not None else count
        return max(1, min(limit, count))

    async def run(
        self,
        items: Sequence[T],
        func: Callable[[T], R],
        identify: Callable[[Any], str] = str,
    ) -> List[R]:
        """
        Execute ``func`` for every item under the concurrency cap.

        Parameters
        ----------
        items : Sequence[T]
            Independent work items
        func : callable
            Blocking function run in a worker thread; returns a payload or
            raises
        identify : callable, default=str
            Maps an item to the identifier reported on failure

        Returns
        -------
        List[R]
            One payload per item, in submission order

        Raises
        ------
        BatchFailedError
            If any call raised; no partial result is returned
        """
        items = list(items)
        collector: ResultCollector[R] = ResultCollector(self.name, identify)
        self.collector = collector
        self.peak_active = 0
        if not items:
            return collector.finish(total=0)

        workers_count = self.concurrency_for(len(items))
        pending: "asyncio.Queue[Tuple[int, T]]" = asyncio.Queue()
        for index, item in enumerate(items):
            pending.put_nowait((index, item))
        outcomes: "asyncio.Queue[Any]" = asyncio.Queue()
        abort = asyncio.Event()

        logger.info(
            f"executor.{self.name}.start",
            extra={
                "run_id": get_run_id(),
                "items": len(items),
                "concurrency": workers_count,
            },
        )

        with ThreadPoolExecutor(
            max_workers=workers_count, thread_name_prefix=f"abu-{self.name}"
        ) as pool:
            drain = asyncio.create_task(collector.drain(outcomes))
            workers = [
                asyncio.create_task(
                    self._worker(pending, outcomes, abort, pool, func, identify)
                )
                for _ in range(workers_count)
            ]
            try:
                await asyncio.gather(*workers)
            finally:
                await outcomes.put(BATCH_DONE)
                await drain

        skipped = pending.qsize()
        logger.info(
            f"executor.{self.name}.done",
            extra={
                "run_id": get_run_id(),
                "completed": collector.completed,
                "skipped": skipped,
                "peak_active": self.peak_active,
            },
        )
        return collector.finish(total=len(items), skipped=skipped)

    async def _worker(
        self,
        pending: "asyncio.Queue[Tuple[int, T]]",
        outcomes: "asyncio.Queue[Any]",
        abort: asyncio.Event,
        pool: ThreadPoolExecutor,
        func: Callable[[T], R],
        identify: Callable[[Any], str],
    ) -> None:
        """Pull and execute items until the queue is empty or the batch aborts."""
        loop = asyncio.get_running_loop()
        while not abort.is_set():
            try:
                index, item = pending.get_nowait()
            except asyncio.QueueEmpty:
                return

            self._active += 1
            self.peak_active = max(self.peak_active, self._active)
            try:
                value = await loop.run_in_executor(pool, func, item)
            except Exception as exc:  # pylint: disable=broad-except
                # Handed to the collector, which fails the batch
                if not abort.is_set():
                    abort.set()
                    logger.warning(
                        f"executor.{self.name}.abort",
                        extra={
                            "run_id": get_run_id(),
                            "identifier": identify(item),
                            "error": str(exc),
                        },
                    )
                await outcomes.put(TaskOutcome(index=index, item=item, error=exc))
            else:
                await outcomes.put(TaskOutcome(index=index, item=item, value=value))
            finally:
                self._active -= 1
