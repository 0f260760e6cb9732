from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import attrs


@attrs.frozen
class CachedResult:
    payload: Any
    created_at: datetime


class IIdempotencyCache(ABC):
    """
    Idempotency key -> previously produced result, with TTL expiry.

    A miss and an expired entry look the same to callers: both mean
    "run the operation".
    """

    @abstractmethod
    def get(self, key: Optional[str]) -> Optional[CachedResult]:
        pass

    @abstractmethod
    def put(self, key: str, payload: Any) -> CachedResult:
        pass

    @abstractmethod
    def claim(self, key: str) -> bool:
        """
        Atomically move key from absent to in-progress.

        Returns:
            False if a fresh result or a fresh claim already holds the key
        """
        pass

    @abstractmethod
    def release(self, key: str) -> None:
        """Drop an in-progress claim; completed entries are left alone"""
        pass

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Forget the key whatever state it is in"""
        pass
