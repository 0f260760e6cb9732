"""
Time source abstraction.

Everything that reasons about expiry (idempotency TTL, hold expiration) asks an
IClock for "now" so tests can pin and advance time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union


InstantLike = Union[datetime, date, str]


class IClock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC"""
        pass


class SystemClock(IClock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock(IClock):
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = ensure_utc(start) if start else datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        self._now = ensure_utc(instant)

    def advance(self, *, seconds: float = 0, minutes: float = 0) -> datetime:
        self._now += timedelta(seconds=seconds, minutes=minutes)
        return self._now


def ensure_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: InstantLike) -> datetime:
    """
    Parse an instant into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC) and ISO-8601 strings such as
    ``2024-06-01``, ``2024-06-01T14:00:00Z`` or ``2024-06-01T14:00:00+02:00``.

    Raises:
        ValueError: if the string is not ISO-8601
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f'Unsupported instant: {value!r}')

    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = f'{text[:-1]}+00:00'
    return ensure_utc(datetime.fromisoformat(text))


def is_expired_with_buffer(
    instant: Optional[InstantLike], *, now: datetime, buffer_seconds: float = 5
) -> bool:
    """
    True if ``instant`` lies at or before ``now - buffer_seconds``.

    The buffer absorbs small clock skew between systems. A missing or
    unparsable instant is treated as not expired.
    """
    if instant is None or instant == '':
        return False
    try:
        moment = parse_instant(instant)
    except ValueError:
        return False
    return moment <= ensure_utc(now) - timedelta(seconds=buffer_seconds)
