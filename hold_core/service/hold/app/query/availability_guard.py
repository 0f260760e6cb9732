"""
Availability Guard

Answers "does the candidate stay conflict with any still-valid reservation?"

1. Read non-cancelled reservations for the site
2. Drop holds whose hold_expiration is at or before now
3. Half-open overlap test: conflict iff s1 < e2 and e1 > s2

If the read fails the guard fails open by default: the candidate is reported
available, and the event is logged, counted and attached to the current span.
Callers relying on this guard must pair it with a uniqueness constraint in
the durable store.
"""

from opentelemetry import trace

from hold_core.platform.exception.exceptions import ReservationReadError
from hold_core.platform.logging.loguru_io import Logger
from hold_core.platform.metrics.hold_metrics import hold_metrics
from hold_core.platform.time.clock import IClock, SystemClock
from hold_core.service.hold.app.interface.i_reservation_reader import IReservationReader
from hold_core.service.hold.domain.reservation import CandidateRange, Reservation


def find_conflicts(
    reservations: list[Reservation], candidate: CandidateRange, *, now
) -> list[Reservation]:
    return [r for r in reservations if r.blocks(now=now) and r.conflicts_with(candidate)]


class AvailabilityGuard:
    def __init__(
        self,
        *,
        reservation_reader: IReservationReader,
        clock: IClock | None = None,
        fail_open: bool = True,
    ) -> None:
        self.reservation_reader = reservation_reader
        self.clock = clock or SystemClock()
        self.fail_open = fail_open
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def is_available(self, *, site_id: str, candidate: CandidateRange) -> bool:
        """
        Args:
            site_id: Site to check
            candidate: Proposed stay; check_in < check_out is the caller's job

        Returns:
            True when no live reservation overlaps the candidate

        Raises:
            ReservationReadError: only when fail_open is False
        """
        with self.tracer.start_as_current_span(
            'query.is_available',
            attributes={
                'site.id': site_id,
                'candidate.check_in': candidate.check_in.isoformat(),
                'candidate.check_out': candidate.check_out.isoformat(),
            },
        ) as span:
            try:
                reservations = await self.reservation_reader.list_active_reservations(
                    site_id=site_id
                )
            except ReservationReadError as e:
                return self._on_read_error(site_id=site_id, error=e, span=span)

            conflicts = find_conflicts(reservations, candidate, now=self.clock.now())
            span.set_attribute('reservations.checked', len(reservations))
            span.set_attribute('reservations.conflicting', len(conflicts))

            if conflicts:
                Logger.base.info(
                    f'⛔ [AVAILABILITY] site={site_id} '
                    f'[{candidate.check_in.isoformat()}, {candidate.check_out.isoformat()}) '
                    f'conflicts with {[r.id for r in conflicts]}'
                )
                hold_metrics.record_availability_check(result='conflict')
                return False

            hold_metrics.record_availability_check(result='available')
            return True

    def _on_read_error(self, *, site_id: str, error: ReservationReadError, span) -> bool:
        if not self.fail_open:
            hold_metrics.record_availability_check(result='read_error')
            span.record_exception(error)
            raise error

        Logger.base.warning(
            f'⚠️ [AVAILABILITY] FAIL-OPEN site={site_id}: reservation read failed '
            f'({error.message}); reporting available'
        )
        hold_metrics.record_fail_open(site_id=site_id)
        span.add_event(
            'availability.fail_open',
            attributes={'site.id': site_id, 'error.message': error.message},
        )
        return True
