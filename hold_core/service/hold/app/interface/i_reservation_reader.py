"""
Reservation Reader Interface - Hold Service

CQRS Query Side
Read-only access to the reservation store that owns persisted bookings
"""

from abc import ABC, abstractmethod
from typing import List

from hold_core.service.hold.domain.reservation import Reservation


class IReservationReader(ABC):
    @abstractmethod
    async def list_active_reservations(self, *, site_id: str) -> List[Reservation]:
        """
        List the non-cancelled reservations on a site

        Args:
            site_id: Site identifier (foreign key into the reservation store)

        Returns:
            Reservation rows; expired holds are still included

        Raises:
            ReservationReadError: the store could not be read. Must never be
                reported as an empty list.
        """
        pass
