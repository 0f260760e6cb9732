"""
Bounded Concurrency Executor

Runs many independent work items against a slow, rate-limited downstream
without overwhelming it:

- min(concurrency_limit, len(items)) logical workers share one FIFO pool
- every item reaches the handler exactly once, in no guaranteed order
- a failing item is reported and skipped; siblings keep going, nothing is retried
- run() returns only after every item has been attempted, and never raises
  for the batch as a whole

Usage:
    executor = BoundedConcurrencyExecutor()
    result = await executor.run(items, handler, concurrency_limit=5)
"""

from collections import deque
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

import anyio
import attrs

from hold_core.platform.concurrency.delay_strategy import IDelayStrategy, JitterDelay
from hold_core.platform.logging.loguru_io import Logger
from hold_core.platform.metrics.hold_metrics import hold_metrics


T = TypeVar('T')

Handler = Callable[[T], Awaitable[Any]]
ErrorReporter = Callable[[T, Exception], None]


@attrs.define
class ItemFailure(Generic[T]):
    item: T
    error: Exception


@attrs.define
class BatchRunResult(Generic[T]):
    """Completion report: every item attempted, not every item succeeded"""

    attempted: int = 0
    succeeded: list[T] = attrs.field(factory=list)
    failed: list[ItemFailure[T]] = attrs.field(factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


class BoundedConcurrencyExecutor:
    def __init__(
        self,
        *,
        delay_strategy: Optional[IDelayStrategy] = None,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self.delay_strategy = delay_strategy or JitterDelay(min_ms=0, max_ms=50)
        self.on_error = on_error

    async def run(
        self,
        items: Iterable[T],
        handler: Handler,
        concurrency_limit: int = 5,
    ) -> BatchRunResult[T]:
        """
        Feed every item to ``handler`` with at most ``concurrency_limit`` in flight.

        Args:
            items: Work items, dequeued FIFO
            handler: Async callable invoked once per item
            concurrency_limit: Maximum simultaneous handler invocations

        Returns:
            BatchRunResult listing succeeded items and per-item failures
        """
        queue: deque[T] = deque(items)
        result: BatchRunResult[T] = BatchRunResult()
        worker_count = max(0, min(concurrency_limit, len(queue)))
        if worker_count == 0:
            return result

        Logger.base.debug(
            f'🚀 [BATCH] Starting {worker_count} workers for {len(queue)} items '
            f'(limit={concurrency_limit})'
        )

        async with anyio.create_task_group() as tg:
            for worker_id in range(worker_count):
                tg.start_soon(self._worker, worker_id, queue, handler, result)

        Logger.base.info(
            f'🏁 [BATCH] Attempted {result.attempted} items: '
            f'{len(result.succeeded)} succeeded, {len(result.failed)} failed'
        )
        return result

    async def _worker(
        self,
        worker_id: int,
        queue: deque[T],
        handler: Handler,
        result: BatchRunResult[T],
    ) -> None:
        # Check and pop share no await, so no two workers can take the same item
        while queue:
            item = queue.popleft()
            result.attempted += 1
            try:
                await handler(item)
            except Exception as e:
                result.failed.append(ItemFailure(item=item, error=e))
                hold_metrics.record_batch_item(succeeded=False)
                Logger.base.warning(
                    f'⚠️ [BATCH] worker={worker_id} handler error for {item!r}: '
                    f'{type(e).__name__}: {e}'
                )
                self._report(item, e)
            else:
                result.succeeded.append(item)
                hold_metrics.record_batch_item(succeeded=True)

            if queue:
                await self.delay_strategy.pause()

    def _report(self, item: T, error: Exception) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(item, error)
        except Exception as reporter_error:
            Logger.base.error(
                f'❌ [BATCH] on_error reporter raised {type(reporter_error).__name__}: '
                f'{reporter_error}'
            )
