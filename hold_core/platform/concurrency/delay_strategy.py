from abc import ABC, abstractmethod
import random
from typing import Optional

import anyio


class IDelayStrategy(ABC):
    @abstractmethod
    async def pause(self) -> None:
        """Suspend the caller for the strategy's delay"""
        pass


class NoDelay(IDelayStrategy):
    async def pause(self) -> None:
        return None


class JitterDelay(IDelayStrategy):
    """
    Sleep a uniformly random time in [min_ms, max_ms].

    Spreads workers (or a retry) across the window so several callers hitting
    the same upstream do not line up.
    """

    def __init__(self, *, min_ms: int = 0, max_ms: int = 50, rng: Optional[random.Random] = None):
        if min_ms < 0 or max_ms < min_ms:
            raise ValueError(f'Invalid jitter window [{min_ms}, {max_ms}] ms')
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._rng = rng or random.Random()

    def next_delay_seconds(self) -> float:
        return self._rng.uniform(self.min_ms, self.max_ms) / 1000

    async def pause(self) -> None:
        delay = self.next_delay_seconds()
        if delay > 0:
            await anyio.sleep(delay)


def jitter_or_no_delay(*, min_ms: int = 0, max_ms: int) -> IDelayStrategy:
    """A zero-width window means no delay at all."""
    if max_ms <= 0:
        return NoDelay()
    return JitterDelay(min_ms=min_ms, max_ms=max_ms)
