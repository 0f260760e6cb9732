"""
Test Configuration and Fixtures

This module provides:
- Environment setup (log directory, settings) before application imports
- A manual clock pinned to a known instant
- In-memory fakes of the hold service ports (reader, creator)
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings and the loguru sinks are built at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('DEBUG', 'true')
    os.environ.setdefault('SERVICE_NAME', 'reservation-hold-test')


_early_setup_test_environment()

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import List, Optional  # noqa: E402

import anyio  # noqa: E402
import pytest  # noqa: E402

from hold_core.platform.concurrency.bounded_executor import BoundedConcurrencyExecutor  # noqa: E402
from hold_core.platform.concurrency.delay_strategy import NoDelay  # noqa: E402
from hold_core.platform.exception.exceptions import ReservationReadError  # noqa: E402
from hold_core.platform.time.clock import IClock, ManualClock  # noqa: E402
from hold_core.service.hold.app.dto import HoldRequest, HoldResult  # noqa: E402
from hold_core.service.hold.app.interface import IHoldCreator, IReservationReader  # noqa: E402
from hold_core.service.hold.domain.reservation import Reservation  # noqa: E402
from hold_core.service.hold.driven_adapter.idempotency.in_memory_idempotency_cache import (  # noqa: E402
    InMemoryIdempotencyCache,
)


FIXED_NOW = datetime(2024, 5, 20, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryReservationReader(IReservationReader):
    """Mock implementation of IReservationReader for testing"""

    def __init__(self) -> None:
        self.rows: dict[str, List[Reservation]] = {}
        self.error: Optional[ReservationReadError] = None
        self.calls: List[str] = []

    def add(self, site_id: str, reservation: Reservation) -> None:
        self.rows.setdefault(site_id, []).append(reservation)

    async def list_active_reservations(self, *, site_id: str) -> List[Reservation]:
        self.calls.append(site_id)
        if self.error is not None:
            raise self.error
        return [r for r in self.rows.get(site_id, []) if not r.is_cancelled]


class RecordingHoldCreator(IHoldCreator):
    """Mock implementation of IHoldCreator that records every call"""

    def __init__(self, *, clock: IClock, hold_minutes: int = 15) -> None:
        self.clock = clock
        self.hold_minutes = hold_minutes
        self.requests: List[HoldRequest] = []
        self.fail_for_sites: set[str] = set()
        self.delay_seconds: float = 0

    async def create_hold(self, *, request: HoldRequest) -> HoldResult:
        self.requests.append(request)
        if self.delay_seconds:
            await anyio.sleep(self.delay_seconds)
        if request.site_id in self.fail_for_sites:
            raise RuntimeError(f'CRM rejected hold for site {request.site_id}')
        return HoldResult(
            reservation_id=f'res-{len(self.requests)}',
            hold_expiration=self.clock.now() + timedelta(minutes=self.hold_minutes),
        )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(FIXED_NOW)


@pytest.fixture
def idempotency_cache(clock: ManualClock) -> InMemoryIdempotencyCache:
    return InMemoryIdempotencyCache(clock=clock, ttl_seconds=300, max_entries=100)


@pytest.fixture
def executor() -> BoundedConcurrencyExecutor:
    return BoundedConcurrencyExecutor(delay_strategy=NoDelay())


@pytest.fixture
def reservation_reader() -> InMemoryReservationReader:
    return InMemoryReservationReader()


@pytest.fixture
def hold_creator(clock: ManualClock) -> RecordingHoldCreator:
    return RecordingHoldCreator(clock=clock)
