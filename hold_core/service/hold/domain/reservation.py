"""
Reservation domain model

Date ranges are half-open, [check_in, check_out): a stay ending on the day
another begins does not overlap it.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Mapping, Optional

import attrs

from hold_core.platform.time.clock import parse_instant


class ReservationStatus(StrEnum):
    HOLD = 'hold'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    CHECKED_IN = 'checked_in'
    COMPLETED = 'completed'


def ranges_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    return start_a < end_b and end_a > start_b


@attrs.frozen
class CandidateRange:
    """
    Proposed new stay on a site.

    Precondition (not validated): check_in < check_out.
    """

    site_id: str
    check_in: datetime = attrs.field(converter=parse_instant)
    check_out: datetime = attrs.field(converter=parse_instant)


@attrs.frozen
class Reservation:
    id: str
    status: str
    check_in: datetime = attrs.field(converter=parse_instant)
    check_out: datetime = attrs.field(converter=parse_instant)
    hold_expiration: Optional[datetime] = attrs.field(
        default=None, converter=attrs.converters.optional(parse_instant)
    )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Reservation':
        """
        Build from a reservation store row.

        Row keys: id, status, hold_expiration, check_in_date, check_out_date

        Raises:
            KeyError / ValueError: row is missing fields or has unparsable dates
        """
        return cls(
            id=str(row['id']),
            status=str(row['status']).lower(),
            check_in=row['check_in_date'],
            check_out=row['check_out_date'],
            hold_expiration=row.get('hold_expiration') or None,
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == ReservationStatus.CANCELLED

    def is_expired_hold(self, *, now: datetime) -> bool:
        """A hold whose expiration is at or before now is logically released"""
        return (
            self.status == ReservationStatus.HOLD
            and self.hold_expiration is not None
            and self.hold_expiration <= now
        )

    def blocks(self, *, now: datetime) -> bool:
        return not self.is_cancelled and not self.is_expired_hold(now=now)

    def conflicts_with(self, candidate: CandidateRange) -> bool:
        return ranges_overlap(self.check_in, self.check_out, candidate.check_in, candidate.check_out)
