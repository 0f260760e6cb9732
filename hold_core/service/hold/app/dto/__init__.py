"""Hold Application DTOs"""

from hold_core.service.hold.app.dto.hold_dto import (
    HoldOutcome,
    HoldOutcomeStatus,
    HoldRequest,
    HoldResult,
)


__all__ = [
    'HoldOutcome',
    'HoldOutcomeStatus',
    'HoldRequest',
    'HoldResult',
]
