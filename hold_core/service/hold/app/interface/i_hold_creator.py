from abc import ABC, abstractmethod

from hold_core.service.hold.app.dto.hold_dto import HoldRequest, HoldResult


class IHoldCreator(ABC):
    """
    Side-effecting hold creation (reservation insert, CRM item, payment intent).

    Implementations bound their own I/O (see fetch_with_retry) and raise on
    failure; configuration problems must surface as MissingConfigurationError.
    """

    @abstractmethod
    async def create_hold(self, *, request: HoldRequest) -> HoldResult:
        pass
