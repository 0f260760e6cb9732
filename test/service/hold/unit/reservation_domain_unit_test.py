"""
Unit tests for the reservation domain model

Half-open overlap rule, hold expiry and row parsing.
"""

from datetime import datetime, timedelta, timezone

import pytest

from hold_core.service.hold.domain.reservation import (
    CandidateRange,
    Reservation,
    ReservationStatus,
    ranges_overlap,
)


NOW = datetime(2024, 5, 20, 12, 0, 0, tzinfo=timezone.utc)


def _day(d: int) -> datetime:
    return datetime(2024, 6, d, tzinfo=timezone.utc)


class TestRangesOverlap:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        'start,end,expected',
        [
            (5, 8, False),  # starts when existing ends
            (10, 12, False),
            (4, 6, True),
            (2, 3, True),
            (1, 5, True),
        ],
    )
    def test_against_june_1_to_5(self, start: int, end: int, expected: bool) -> None:
        assert ranges_overlap(_day(1), _day(5), _day(start), _day(end)) is expected

    @pytest.mark.unit
    def test_ending_when_existing_begins_is_not_overlap(self) -> None:
        assert not ranges_overlap(_day(5), _day(8), _day(1), _day(5))
        assert not ranges_overlap(_day(1), _day(5), _day(5), _day(8))


class TestReservation:
    @pytest.mark.unit
    def test_expired_hold_does_not_block(self) -> None:
        hold = Reservation(
            id='r1',
            status=ReservationStatus.HOLD,
            check_in=_day(1),
            check_out=_day(5),
            hold_expiration=NOW - timedelta(seconds=1),
        )
        assert hold.is_expired_hold(now=NOW)
        assert not hold.blocks(now=NOW)

    @pytest.mark.unit
    def test_hold_expiring_exactly_now_is_expired(self) -> None:
        hold = Reservation(
            id='r1', status='hold', check_in=_day(1), check_out=_day(5), hold_expiration=NOW
        )
        assert not hold.blocks(now=NOW)

    @pytest.mark.unit
    def test_live_hold_blocks(self) -> None:
        hold = Reservation(
            id='r1',
            status='hold',
            check_in=_day(1),
            check_out=_day(5),
            hold_expiration=NOW + timedelta(minutes=10),
        )
        assert hold.blocks(now=NOW)

    @pytest.mark.unit
    def test_hold_without_expiration_blocks(self) -> None:
        hold = Reservation(id='r1', status='hold', check_in=_day(1), check_out=_day(5))
        assert hold.blocks(now=NOW)

    @pytest.mark.unit
    def test_expiration_ignored_for_confirmed(self) -> None:
        confirmed = Reservation(
            id='r1',
            status='confirmed',
            check_in=_day(1),
            check_out=_day(5),
            hold_expiration=NOW - timedelta(days=1),
        )
        assert confirmed.blocks(now=NOW)

    @pytest.mark.unit
    def test_cancelled_never_blocks(self) -> None:
        cancelled = Reservation(id='r1', status='cancelled', check_in=_day(1), check_out=_day(5))
        assert not cancelled.blocks(now=NOW)

    @pytest.mark.unit
    def test_conflicts_with_candidate(self) -> None:
        confirmed = Reservation(id='r1', status='confirmed', check_in=_day(1), check_out=_day(5))

        assert confirmed.conflicts_with(CandidateRange('S', _day(4), _day(6)))
        assert not confirmed.conflicts_with(CandidateRange('S', _day(5), _day(8)))


class TestReservationFromRow:
    @pytest.mark.unit
    def test_parses_store_row(self) -> None:
        row = {
            'id': 42,
            'status': 'HOLD',
            'hold_expiration': '2024-05-20T12:15:00Z',
            'check_in_date': '2024-06-01',
            'check_out_date': '2024-06-05',
        }

        reservation = Reservation.from_row(row)

        assert reservation.id == '42'
        assert reservation.status == ReservationStatus.HOLD
        assert reservation.check_in == _day(1)
        assert reservation.check_out == _day(5)
        assert reservation.hold_expiration == NOW + timedelta(minutes=15)

    @pytest.mark.unit
    def test_null_hold_expiration(self) -> None:
        row = {
            'id': 'r1',
            'status': 'confirmed',
            'hold_expiration': None,
            'check_in_date': '2024-06-01',
            'check_out_date': '2024-06-05',
        }
        assert Reservation.from_row(row).hold_expiration is None

    @pytest.mark.unit
    def test_missing_field_raises(self) -> None:
        with pytest.raises(KeyError):
            Reservation.from_row({'id': 'r1', 'status': 'hold'})

    @pytest.mark.unit
    def test_candidate_accepts_iso_strings(self) -> None:
        candidate = CandidateRange('S', '2024-06-05', '2024-06-08')
        assert candidate.check_in == _day(5)
        assert candidate.check_out == _day(8)
