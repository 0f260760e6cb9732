"""
Hold DTOs

Request/Result/Outcome DTOs for hold creation.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

import attrs

from hold_core.platform.time.clock import parse_instant
from hold_core.service.hold.domain.reservation import CandidateRange


class HoldOutcomeStatus(StrEnum):
    CREATED = 'created'
    CACHED = 'cached'  # replayed from the idempotency cache
    IN_PROGRESS = 'in_progress'  # same idempotency key already being processed
    UNAVAILABLE = 'unavailable'  # conflicts with an existing reservation
    FAILED = 'failed'


@attrs.frozen
class HoldRequest:
    site_id: str
    check_in: datetime = attrs.field(converter=parse_instant)
    check_out: datetime = attrs.field(converter=parse_instant)
    idempotency_key: Optional[str] = None  # client request token
    details: dict[str, Any] = attrs.field(factory=dict)  # guest/contact data for the creator

    @property
    def candidate(self) -> CandidateRange:
        return CandidateRange(site_id=self.site_id, check_in=self.check_in, check_out=self.check_out)


@attrs.frozen
class HoldResult:
    """What the side-effecting creator produced"""

    reservation_id: str
    hold_expiration: datetime = attrs.field(converter=parse_instant)


@attrs.frozen
class HoldOutcome:
    request: HoldRequest
    status: HoldOutcomeStatus
    result: Optional[HoldResult] = None
    error_message: str = ''

    @property
    def is_success(self) -> bool:
        return self.status in (HoldOutcomeStatus.CREATED, HoldOutcomeStatus.CACHED)

    @classmethod
    def created(cls, request: HoldRequest, result: HoldResult) -> 'HoldOutcome':
        return cls(request=request, status=HoldOutcomeStatus.CREATED, result=result)

    @classmethod
    def cached(cls, request: HoldRequest, result: HoldResult) -> 'HoldOutcome':
        return cls(request=request, status=HoldOutcomeStatus.CACHED, result=result)

    @classmethod
    def in_progress(cls, request: HoldRequest) -> 'HoldOutcome':
        return cls(
            request=request,
            status=HoldOutcomeStatus.IN_PROGRESS,
            error_message='A request with this idempotency key is already being processed',
        )

    @classmethod
    def unavailable(cls, request: HoldRequest) -> 'HoldOutcome':
        return cls(
            request=request,
            status=HoldOutcomeStatus.UNAVAILABLE,
            error_message='Site is not available for the requested dates',
        )

    @classmethod
    def failed(cls, request: HoldRequest, error: Exception) -> 'HoldOutcome':
        return cls(
            request=request,
            status=HoldOutcomeStatus.FAILED,
            error_message=f'{type(error).__name__}: {error}',
        )
