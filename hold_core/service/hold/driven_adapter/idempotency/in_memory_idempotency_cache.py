"""
In-memory idempotency cache

Process-local map from a client idempotency key to the result of the hold it
produced. Entries live for ``ttl_seconds``; stale entries are dropped when
looked up, by the periodic sweeper and before capacity eviction. When
``max_entries`` is exceeded the oldest entries go first.

All methods are synchronous and never suspend, so under a single event loop
every call is atomic with respect to other tasks. This is what makes
``claim`` a compare-and-swap.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Optional

import anyio
import attrs

from hold_core.platform.logging.loguru_io import Logger
from hold_core.platform.metrics.hold_metrics import hold_metrics
from hold_core.platform.time.clock import IClock, SystemClock
from hold_core.service.hold.app.interface.i_idempotency_cache import (
    CachedResult,
    IIdempotencyCache,
)


DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 10_000


@attrs.define
class _Entry:
    created_at: datetime
    payload: Any = None
    in_progress: bool = False


class InMemoryIdempotencyCache(IIdempotencyCache):
    def __init__(
        self,
        *,
        clock: Optional[IClock] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        if max_entries <= 0:
            raise ValueError('max_entries must be positive')
        self.clock = clock or SystemClock()
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_entries = max_entries
        self._entries: OrderedDict[str, _Entry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: _Entry, now: datetime) -> bool:
        return now - entry.created_at > self.ttl

    def get(self, key: Optional[str]) -> Optional[CachedResult]:
        if not key:
            return None

        entry = self._entries.get(key)
        if entry is None:
            hold_metrics.record_idempotency_lookup(result='miss')
            return None

        if self._is_expired(entry, self.clock.now()):
            del self._entries[key]
            hold_metrics.record_idempotency_lookup(result='expired')
            hold_metrics.record_idempotency_eviction(reason='ttl')
            return None

        if entry.in_progress:
            hold_metrics.record_idempotency_lookup(result='miss')
            return None

        hold_metrics.record_idempotency_lookup(result='hit')
        return CachedResult(payload=entry.payload, created_at=entry.created_at)

    def put(self, key: str, payload: Any) -> CachedResult:
        now = self.clock.now()
        self._entries[key] = _Entry(created_at=now, payload=payload)
        self._entries.move_to_end(key)
        self._enforce_capacity()
        return CachedResult(payload=payload, created_at=now)

    def claim(self, key: str) -> bool:
        now = self.clock.now()
        entry = self._entries.get(key)
        if entry is not None and not self._is_expired(entry, now):
            return False

        self._entries[key] = _Entry(created_at=now, in_progress=True)
        self._entries.move_to_end(key)
        self._enforce_capacity()
        return True

    def release(self, key: str) -> None:
        entry = self._entries.get(key)
        if entry is not None and entry.in_progress:
            del self._entries[key]

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self) -> int:
        """Remove every expired entry; returns how many were removed"""
        now = self.clock.now()
        expired_keys = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired_keys:
            del self._entries[key]
        hold_metrics.record_idempotency_eviction(reason='ttl', count=len(expired_keys))
        return len(expired_keys)

    async def run_sweeper(self, interval_seconds: float) -> None:
        """
        Sweep forever on a fixed interval. Start it in a task group and cancel
        the group to stop it.
        """
        Logger.base.info(f'🧹 [IDEMPOTENCY] Sweeper started (interval={interval_seconds}s)')
        while True:
            await anyio.sleep(interval_seconds)
            if removed := self.sweep():
                Logger.base.debug(f'🧹 [IDEMPOTENCY] Swept {removed} expired entries')

    def _enforce_capacity(self) -> None:
        if len(self._entries) <= self.max_entries:
            return

        self.sweep()
        overflow = len(self._entries) - self.max_entries
        for _ in range(max(0, overflow)):
            evicted_key, _entry = self._entries.popitem(last=False)
            Logger.base.debug(f'📦 [IDEMPOTENCY] Capacity eviction of key {evicted_key}')
        hold_metrics.record_idempotency_eviction(reason='capacity', count=max(0, overflow))
