"""GitHub API access for backups.

This module provides:
- GitHubClient: Async GitHub API client returning listing pages
- Paginator: Walks page-numbered listings under the rate limit gate
- Rate limit tracking: RateLimitGate, PoolRateLimit, compute_wait
"""

from .client import GitHubClient
from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from .pagination import Page, Paginator, parse_next_page
from .rate_limit import (
    PoolRateLimit,
    RateLimitGate,
    RateLimitPool,
    RateLimitSnapshot,
    RateLimitStatus,
    compute_wait,
)

__all__ = [
    # Client
    "GitHubClient",
    # Exceptions
    "GitHubAuthenticationError",
    "GitHubClientError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    # Pagination
    "Page",
    "Paginator",
    "parse_next_page",
    # Rate limit
    "PoolRateLimit",
    "RateLimitGate",
    "RateLimitPool",
    "RateLimitSnapshot",
    "RateLimitStatus",
    "compute_wait",
]
