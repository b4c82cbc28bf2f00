"""Rate limit gate for paginated listing.

The gate sits in front of every listing request. It keeps the quota state
reported by the latest response, across listings, and suspends the caller
until the quota resets when the remaining budget has fallen to the
low-water mark.

The wait decision is the pure function :func:`compute_wait`; the gate only
adds state tracking, logging, and the (injectable) sleep.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from gitback.config import RateLimitConfig, get_settings
from gitback.logging import get_logger

from .schemas import PoolRateLimit

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
ClockFunc = Callable[[], datetime]

DEFAULT_LOW_WATER_MARK = 10
DEFAULT_SAFETY_MARGIN = 10.0


def compute_wait(
    remaining: int,
    reset_at: datetime,
    now: datetime,
    *,
    low_water_mark: int = DEFAULT_LOW_WATER_MARK,
    safety_margin: float = DEFAULT_SAFETY_MARGIN,
) -> float:
    """Seconds to wait before the next request may be sent.

    Args:
        remaining: Requests left in the current window
        reset_at: When the window resets
        now: Current time (same timezone awareness as reset_at)
        low_water_mark: Wait when remaining is at or below this value
        safety_margin: Seconds added past the reset instant

    Returns:
        0.0 when quota is sufficient, else the time until reset plus the
        margin. A reset already in the past yields just the margin.
    """
    if remaining > low_water_mark:
        return 0.0
    until_reset = max(0.0, (reset_at - now).total_seconds())
    return until_reset + safety_margin


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateLimitGate:
    """Suspends pagination while the quota is nearly exhausted.

    Usage:
        gate = RateLimitGate()
        await gate.wait_if_needed()     # may sleep until reset
        page = await fetch(1)
        gate.record(page.rate)

    One gate is shared by every listing of a run, so quota drained by the
    last page of one listing delays the first request of the next. The gate
    has a single writer: the pagination flow that feeds it.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = _utcnow,
    ) -> None:
        """Initialize the gate.

        Args:
            config: Thresholds (uses settings if not provided)
            sleep: Coroutine used to wait, replaceable in tests
            clock: Returns the current UTC time, replaceable in tests
        """
        self._config = config or get_settings().rate_limit
        self._sleep = sleep
        self._clock = clock

        self._state: PoolRateLimit | None = None
        self._pending = False
        self._waits = 0
        self._total_waited = 0.0

    @property
    def state(self) -> PoolRateLimit | None:
        """Most recently observed quota state."""
        return self._state

    @property
    def waits(self) -> int:
        """Number of times the gate has suspended the caller."""
        return self._waits

    @property
    def total_waited(self) -> float:
        """Total seconds spent waiting for resets."""
        return self._total_waited

    def wait_for(self, rate: PoolRateLimit) -> float:
        """Seconds the gate would wait for the given state, without waiting."""
        return compute_wait(
            rate.remaining,
            rate.reset_at,
            self._clock(),
            low_water_mark=self._config.low_water_mark,
            safety_margin=self._config.safety_margin_seconds,
        )

    def record(self, rate: PoolRateLimit | None) -> None:
        """Remember the quota state reported by a response.

        The state is consulted by the next :meth:`wait_if_needed`, which may
        belong to a later listing sharing this gate.
        """
        if rate is None:
            return
        self._state = rate
        self._pending = True

    async def wait_if_needed(self) -> float:
        """Wait for reset if the last recorded state is below the mark.

        Call before every request. A state that has already been waited out
        does not cause a second wait.

        Returns:
            Seconds waited (0.0 when the caller may proceed at once)
        """
        rate = self._state
        if rate is None or not self._pending:
            return 0.0

        delay = self.wait_for(rate)
        if delay <= 0:
            return 0.0

        logger.warning(
            "Rate limit nearly exhausted ({}/{} remaining, pool={}), waiting {:.0f}s until reset",
            rate.remaining,
            rate.limit,
            rate.pool,
            delay,
        )
        self._pending = False
        self._waits += 1
        self._total_waited += delay
        await self._sleep(delay)
        logger.info("Rate limit window reset, resuming")
        return delay

    async def observe(self, rate: PoolRateLimit | None) -> float:
        """Record the latest quota state and wait for reset if needed.

        Args:
            rate: Quota state from the most recent response; None means the
                response carried no rate information

        Returns:
            Seconds waited (0.0 when the caller may proceed at once)
        """
        self.record(rate)
        return await self.wait_if_needed()
