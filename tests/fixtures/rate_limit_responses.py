"""Canned GitHub quota data for tests.

Builders for the GET /rate_limit body, the x-ratelimit-* headers sent with
every listing response, and the Link header that drives pagination.

See: https://docs.github.com/en/rest/rate-limit/rate-limit
"""

import time


def reset_epoch(seconds_from_now: int = 3600) -> int:
    """Unix time ``seconds_from_now`` in the future."""
    return int(time.time()) + seconds_from_now


# -----------------------------------------------------------------------------
# GET /rate_limit
# -----------------------------------------------------------------------------
def pool_body(limit: int, remaining: int, *, reset_in: int = 3600) -> dict[str, int]:
    """One entry of the ``resources`` map; ``used`` is derived."""
    return {
        "limit": limit,
        "remaining": remaining,
        "used": limit - remaining,
        "reset": reset_epoch(reset_in),
    }


def make_rate_limit_body(**pools: dict[str, int]) -> dict[str, object]:
    """A /rate_limit body holding the given pools, keyed by resource name.

    GitHub repeats the core pool under the deprecated top-level ``rate`` key.
    """
    body: dict[str, object] = {"resources": dict(pools)}
    if "core" in pools:
        body["rate"] = dict(pools["core"])
    return body


TOKEN_QUOTA_BODY = make_rate_limit_body(
    core=pool_body(5000, 4500),
    search=pool_body(30, 28, reset_in=60),
)
ANONYMOUS_QUOTA_BODY = make_rate_limit_body(core=pool_body(60, 55))


# -----------------------------------------------------------------------------
# Response headers
# -----------------------------------------------------------------------------
def make_quota_headers(
    remaining: int = 4999,
    *,
    limit: int = 5000,
    reset_in: int = 3600,
    resource: str = "core",
) -> dict[str, str]:
    """x-ratelimit-* headers as sent with a listing response."""
    return {
        "x-ratelimit-limit": str(limit),
        "x-ratelimit-remaining": str(remaining),
        "x-ratelimit-used": str(limit - remaining),
        "x-ratelimit-reset": str(reset_epoch(reset_in)),
        "x-ratelimit-resource": resource,
    }


TOKEN_HEADERS = make_quota_headers(4500)
# Remaining equals the default low-water mark
LOW_WATER_HEADERS = make_quota_headers(10, reset_in=120)
EXHAUSTED_HEADERS = make_quota_headers(0, reset_in=300)
ANONYMOUS_HEADERS = make_quota_headers(55, limit=60)
PARTIAL_HEADERS = {"x-ratelimit-limit": "5000", "x-ratelimit-remaining": "100"}


def make_link_header(path: str, next_page: int | None, last_page: int | None = None) -> str:
    """Link header of a listing page; ``next_page=None`` marks the last page."""
    url = f"https://api.github.com{path}?per_page=100&page="
    rels = {"next": next_page, "last": last_page, "first": 1}
    return ", ".join(f'<{url}{page}>; rel="{rel}"' for rel, page in rels.items() if page)
