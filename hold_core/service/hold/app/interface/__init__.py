"""Hold Service Interfaces"""

from hold_core.service.hold.app.interface.i_hold_creator import IHoldCreator
from hold_core.service.hold.app.interface.i_idempotency_cache import (
    CachedResult,
    IIdempotencyCache,
)
from hold_core.service.hold.app.interface.i_reservation_reader import IReservationReader

__all__ = [
    'CachedResult',
    'IHoldCreator',
    'IIdempotencyCache',
    'IReservationReader',
]
