"""
Fixed-interval gate used to space out calls to rate limited services.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class IntervalGate:
    """
    Allow at most one pass every ``interval`` seconds.
    
    The first call to ``wait()`` passes immediately; every later call sleeps
    until ``interval`` seconds have elapsed since the previous pass. The gate
    holds a lock so concurrent callers are serialized in arrival order.
    """
    
    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if interval < 0:
            raise ValueError("interval must not be negative")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_pass: Optional[float] = None
        self._lock = asyncio.Lock()
    
    async def wait(self) -> float:
        """
        Block until the gate may be passed.
        
        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_pass is not None:
                remaining = self.interval - (self._clock() - self._last_pass)
                if remaining > 0:
                    logger.debug(f"Cooling down for {remaining:.2f}s")
                    await self._sleep(remaining)
                    waited = remaining
            self._last_pass = self._clock()
            return waited
    
    def reset(self) -> None:
        """Forget the previous pass so the next wait() returns immediately."""
        self._last_pass = None
