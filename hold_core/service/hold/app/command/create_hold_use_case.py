"""
Create Hold Use Case

Per request:
1. Idempotency lookup - replay a fresh cached result
2. Claim the key - a concurrent duplicate gets IN_PROGRESS
3. Availability guard - conflicting ranges get UNAVAILABLE
4. Side-effecting creation through IHoldCreator
5. Store the result under the idempotency key

Batches run every request through the BoundedConcurrencyExecutor so the
creator's downstream only sees a bounded number of calls at once.
"""

from typing import Optional, Sequence

from opentelemetry import trace

from hold_core.platform.concurrency.bounded_executor import BoundedConcurrencyExecutor
from hold_core.platform.logging.loguru_io import Logger
from hold_core.platform.metrics.hold_metrics import hold_metrics
from hold_core.platform.time.clock import IClock, SystemClock, is_expired_with_buffer
from hold_core.service.hold.app.dto import HoldOutcome, HoldRequest, HoldResult
from hold_core.service.hold.app.interface import IHoldCreator, IIdempotencyCache
from hold_core.service.hold.app.query.availability_guard import AvailabilityGuard


class CreateHoldUseCase:
    def __init__(
        self,
        *,
        idempotency_cache: IIdempotencyCache,
        availability_guard: AvailabilityGuard,
        hold_creator: IHoldCreator,
        executor: BoundedConcurrencyExecutor,
        clock: Optional[IClock] = None,
        default_concurrency: int = 5,
        hold_expiry_buffer_seconds: float = 5,
    ) -> None:
        self.idempotency_cache = idempotency_cache
        self.availability_guard = availability_guard
        self.hold_creator = hold_creator
        self.executor = executor
        self.clock = clock or SystemClock()
        self.default_concurrency = default_concurrency
        self.hold_expiry_buffer_seconds = hold_expiry_buffer_seconds
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def create_hold(self, request: HoldRequest) -> HoldOutcome:
        with self.tracer.start_as_current_span(
            'use_case.create_hold',
            attributes={
                'site.id': request.site_id,
                'hold.has_idempotency_key': bool(request.idempotency_key),
            },
        ) as span:
            outcome = await self._create_hold(request)
            span.set_attribute('hold.outcome', outcome.status.value)
            hold_metrics.record_hold_outcome(status=outcome.status.value)
            return outcome

    async def _create_hold(self, request: HoldRequest) -> HoldOutcome:
        key = request.idempotency_key

        # ========== Step 1: Idempotency lookup ==========
        if key:
            if (cached := self._replayable(key)) is not None:
                Logger.base.info(f'♻️ [HOLD] Replaying cached hold for key {key}')
                return HoldOutcome.cached(request, cached)

            # ========== Step 2: Claim the key ==========
            if not self.idempotency_cache.claim(key):
                Logger.base.info(f'⏳ [HOLD] Key {key} is already being processed')
                return HoldOutcome.in_progress(request)

        stored = False
        try:
            # ========== Step 3: Availability guard ==========
            available = await self.availability_guard.is_available(
                site_id=request.site_id, candidate=request.candidate
            )
            if not available:
                return HoldOutcome.unavailable(request)

            # ========== Step 4: Side-effecting creation ==========
            result = await self.hold_creator.create_hold(request=request)

            # ========== Step 5: Remember the result ==========
            if key:
                self.idempotency_cache.put(key, result)
                stored = True
        finally:
            # Unavailable, failed or cancelled: let a retry claim the key again
            if key and not stored:
                self.idempotency_cache.release(key)

        Logger.base.info(
            f'✅ [HOLD] Created hold {result.reservation_id} on site {request.site_id} '
            f'until {result.hold_expiration.isoformat()}'
        )
        return HoldOutcome.created(request, result)

    def _replayable(self, key: str) -> Optional[HoldResult]:
        cached = self.idempotency_cache.get(key)
        if cached is None:
            return None

        result: HoldResult = cached.payload
        # A hold that already lapsed no longer blocks anything; make a new one
        if is_expired_with_buffer(
            result.hold_expiration,
            now=self.clock.now(),
            buffer_seconds=self.hold_expiry_buffer_seconds,
        ):
            Logger.base.info(f'⌛ [HOLD] Cached hold for key {key} has expired, not replaying')
            self.idempotency_cache.invalidate(key)
            return None
        return result

    @Logger.io(truncate_content=True)
    async def create_holds(
        self, requests: Sequence[HoldRequest], *, concurrency_limit: Optional[int] = None
    ) -> list[HoldOutcome]:
        """
        Run create_hold for every request with bounded concurrency.

        Returns:
            One outcome per request, in input order. A request whose handler
            raised comes back as FAILED; the batch itself never raises.
        """
        outcomes: dict[int, HoldOutcome] = {}

        async def handle(indexed: tuple[int, HoldRequest]) -> None:
            index, request = indexed
            outcomes[index] = await self.create_hold(request)

        batch = await self.executor.run(
            list(enumerate(requests)),
            handle,
            concurrency_limit=(
                self.default_concurrency if concurrency_limit is None else concurrency_limit
            ),
        )

        for failure in batch.failed:
            index, request = failure.item
            outcomes[index] = HoldOutcome.failed(request, failure.error)
            hold_metrics.record_hold_outcome(status=outcomes[index].status.value)

        return [outcomes[index] for index in range(len(requests)) if index in outcomes]
