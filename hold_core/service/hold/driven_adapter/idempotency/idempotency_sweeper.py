from anyio.abc import TaskGroup

from hold_core.platform.logging.loguru_io import Logger
from hold_core.service.hold.driven_adapter.idempotency.in_memory_idempotency_cache import (
    InMemoryIdempotencyCache,
)


class IdempotencySweeper:
    """
    Background TTL sweep for the in-memory idempotency cache.

    Usage:
        async with anyio.create_task_group() as tg:
            await container.idempotency_sweeper().start(task_group=tg)
            ...
            tg.cancel_scope.cancel()
    """

    def __init__(self, *, cache: InMemoryIdempotencyCache, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError('interval_seconds must be positive')
        self.cache = cache
        self.interval_seconds = interval_seconds

    async def start(self, *, task_group: TaskGroup) -> None:
        task_group.start_soon(self.cache.run_sweeper, self.interval_seconds)
        Logger.base.info(f'🧹 [IDEMPOTENCY] Sweeper scheduled every {self.interval_seconds}s')
