"""Pydantic schemas for GitHub API rate limit data.

These schemas represent rate limit information from:
- GET /rate_limit API endpoint
- x-ratelimit-* response headers
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, computed_field


class RateLimitPool(StrEnum):
    """GitHub rate limit resource pools.

    Listing repositories and gists draws from 'core'.
    See: https://docs.github.com/en/rest/rate-limit/rate-limit
    """

    CORE = "core"
    SEARCH = "search"
    GRAPHQL = "graphql"


class RateLimitStatus(StrEnum):
    """Rate limit health status, used for display.

    - HEALTHY: > 50% remaining
    - WARNING: 20-50% remaining
    - CRITICAL: below 20% remaining
    - EXHAUSTED: 0 remaining
    """

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    EXHAUSTED = "exhausted"


class PoolRateLimit(BaseModel):
    """Rate limit state for a single resource pool.

    Refreshed from the headers of every listing response; the rate limit
    gate decides from it whether the next request may be sent.
    """

    pool: RateLimitPool = Field(default=RateLimitPool.CORE, description="Resource pool name")
    limit: int = Field(ge=0, description="Maximum requests allowed per hour")
    remaining: int = Field(ge=0, description="Requests remaining in current window")
    used: int = Field(default=0, ge=0, description="Requests used in current window")
    reset_at: datetime = Field(description="UTC datetime when limit resets")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_percent(self) -> float:
        """Percentage of rate limit remaining (0.0 to 100.0)."""
        if self.limit == 0:
            return 0.0
        return (self.remaining / self.limit) * 100

    @property
    def seconds_until_reset(self) -> int:
        """Seconds until rate limit resets (0 if already past)."""
        delta = self.reset_at - datetime.now(UTC)
        return max(0, int(delta.total_seconds()))

    def get_status(
        self,
        healthy_threshold: float = 50.0,
        warning_threshold: float = 20.0,
    ) -> RateLimitStatus:
        """Determine rate limit health status."""
        if self.remaining == 0:
            return RateLimitStatus.EXHAUSTED
        if self.remaining_percent >= healthy_threshold:
            return RateLimitStatus.HEALTHY
        if self.remaining_percent >= warning_threshold:
            return RateLimitStatus.WARNING
        return RateLimitStatus.CRITICAL


class RateLimitSnapshot(BaseModel):
    """Point-in-time view of one or more rate limit pools."""

    timestamp: datetime = Field(description="When this snapshot was taken")
    pools: dict[RateLimitPool, PoolRateLimit] = Field(
        default_factory=dict, description="Rate limits by pool"
    )

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Self:
        """Parse from GitHub /rate_limit API response.

        Args:
            data: Raw API response dict with 'resources' key

        Returns:
            RateLimitSnapshot instance
        """
        pools: dict[RateLimitPool, PoolRateLimit] = {}
        resources = data.get("resources", {})

        for pool in RateLimitPool:
            if pool.value in resources:
                r = resources[pool.value]
                pools[pool] = PoolRateLimit(
                    pool=pool,
                    limit=r["limit"],
                    remaining=r["remaining"],
                    used=r.get("used", 0),
                    reset_at=datetime.fromtimestamp(r["reset"], tz=UTC),
                )

        return cls(timestamp=datetime.now(UTC), pools=pools)

    @classmethod
    def from_response_headers(
        cls,
        headers: dict[str, str],
        default_pool: RateLimitPool = RateLimitPool.CORE,
    ) -> Self:
        """Parse from HTTP response headers.

        GitHub includes rate limit info in headers on every response:
        - x-ratelimit-limit
        - x-ratelimit-remaining
        - x-ratelimit-used
        - x-ratelimit-reset
        - x-ratelimit-resource (pool name)

        Missing headers are treated as an untouched quota, so a response
        without them never makes the gate wait.

        Args:
            headers: HTTP response headers dict (lowercase keys)
            default_pool: Default pool if not specified in headers

        Returns:
            RateLimitSnapshot with single pool from headers
        """
        resource = headers.get("x-ratelimit-resource", default_pool.value)
        try:
            actual_pool = RateLimitPool(resource)
        except ValueError:
            actual_pool = default_pool

        limit = int(headers.get("x-ratelimit-limit", "5000"))
        remaining = int(headers.get("x-ratelimit-remaining", str(limit)))
        used = int(headers.get("x-ratelimit-used", "0"))
        reset_ts = int(headers.get("x-ratelimit-reset", "0"))

        reset_at = datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts > 0 else datetime.now(UTC)

        pool_limit = PoolRateLimit(
            pool=actual_pool,
            limit=limit,
            remaining=remaining,
            used=used,
            reset_at=reset_at,
        )
        return cls(timestamp=datetime.now(UTC), pools={actual_pool: pool_limit})

    def get_pool(self, pool: RateLimitPool) -> PoolRateLimit | None:
        """Get rate limit for a specific pool."""
        return self.pools.get(pool)

    def get_core(self) -> PoolRateLimit | None:
        """Convenience accessor for core pool."""
        return self.pools.get(RateLimitPool.CORE)

    def primary(self) -> PoolRateLimit | None:
        """The core pool if present, else whichever pool the snapshot holds."""
        return self.get_core() or next(iter(self.pools.values()), None)


class TokenInfo(BaseModel):
    """Information about the credentials behind the current requests."""

    is_authenticated: bool = Field(description="Whether token is valid and authenticated")
    rate_limit: int = Field(description="Rate limit (5000=PAT, 60=unauthenticated)")
    token_type: str = Field(description="Token type description")

    @classmethod
    def from_rate_limit(cls, limit: int) -> Self:
        """Create TokenInfo from the core rate limit value."""
        is_authenticated = limit >= 5000
        token_type = "PAT" if is_authenticated else "unauthenticated"
        return cls(
            is_authenticated=is_authenticated,
            rate_limit=limit,
            token_type=token_type,
        )
