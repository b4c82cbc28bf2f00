"""Rate limit tracking for GitHub API.

This module provides the quota schemas parsed from responses and the gate
that pauses pagination when the quota is nearly exhausted.
"""

from .gate import RateLimitGate, compute_wait
from .schemas import (
    PoolRateLimit,
    RateLimitPool,
    RateLimitSnapshot,
    RateLimitStatus,
    TokenInfo,
)

__all__ = [
    "PoolRateLimit",
    "RateLimitGate",
    "RateLimitPool",
    "RateLimitSnapshot",
    "RateLimitStatus",
    "TokenInfo",
    "compute_wait",
]
