"""Page-numbered listing pagination under rate limit constraints.

GitHub listing endpoints return at most ``per_page`` items per call and
advertise the following page through the ``Link`` response header. The
paginator walks pages from 1 until no next page is advertised. Every page
request, the first one included, goes through the rate limit gate, and
every response hands its quota state back to it.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar
from urllib.parse import parse_qs, urlsplit

from gitback.logging import get_logger

from .rate_limit import PoolRateLimit, RateLimitGate

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_PER_PAGE = 100

_LINK_NEXT_RE = re.compile(r'<([^>]+)>\s*;\s*rel="?next"?')


@dataclass
class Page(Generic[T]):
    """One page of a listing response.

    Attributes:
        items: Items on this page, in endpoint order
        next_page: Page number to request next; 0 means this is the last page
        rate: Quota state reported by the response, if any
    """

    items: list[T] = field(default_factory=list)
    next_page: int = 0
    rate: PoolRateLimit | None = None

    @property
    def is_last(self) -> bool:
        """Whether no further page is advertised."""
        return self.next_page == 0


PageFetcher = Callable[[int, int], Awaitable[Page[T]]]


def parse_next_page(link_header: str | None) -> int:
    """Extract the next page number from an RFC 5988 ``Link`` header.

    Args:
        link_header: Raw header value, e.g.
            ``<https://api.github.com/user/repos?page=2>; rel="next", ...``

    Returns:
        The ``page`` query parameter of the ``rel="next"`` link, or 0 when
        there is no next link (or it carries no usable page number).
    """
    if not link_header:
        return 0

    for part in link_header.split(","):
        match = _LINK_NEXT_RE.search(part)
        if match is None:
            continue
        values = parse_qs(urlsplit(match.group(1)).query).get("page")
        if not values:
            return 0
        try:
            return max(0, int(values[0]))
        except ValueError:
            return 0
    return 0


class Paginator:
    """Accumulates every page of a listing endpoint into one list.

    Usage:
        paginator = Paginator(RateLimitGate())
        repos = await paginator.list_all(fetch_repos_page, resource="repositories")

    Items that reappear on a later page (the listing shifted while being
    walked) are dropped, keyed by the ``key`` passed to list_all. Items
    whose key is None are always kept.
    """

    def __init__(
        self,
        gate: RateLimitGate,
        *,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> None:
        self._gate = gate
        self._per_page = per_page

    @property
    def per_page(self) -> int:
        """Items requested per page."""
        return self._per_page

    async def list_all(
        self,
        fetch_page: PageFetcher[T],
        *,
        key: Callable[[T], Hashable | None] | None = None,
        resource: str = "items",
    ) -> list[T]:
        """Fetch every page and return the accumulated items.

        Args:
            fetch_page: Coroutine taking (page, per_page) and returning a Page
            key: Identity of an item for duplicate removal
            resource: Name used in log messages

        Returns:
            All items in endpoint order, duplicates removed

        Raises:
            GitHubClientError: Propagated from fetch_page on the first
                unrecoverable error; nothing is retried here.
        """
        items: list[T] = []
        seen: set[Hashable] = set()
        page_number = 1
        pages = 0

        while True:
            await self._gate.wait_if_needed()
            logger.debug("Fetching {} page {} (per_page={})", resource, page_number, self._per_page)
            page = await fetch_page(page_number, self._per_page)
            self._gate.record(page.rate)
            pages += 1

            for item in page.items:
                item_key = key(item) if key else None
                if item_key is not None:
                    if item_key in seen:
                        logger.debug("Skipping duplicate {} entry {!r}", resource, item_key)
                        continue
                    seen.add(item_key)
                items.append(item)

            if page.is_last:
                break

            if page.next_page <= page_number:
                logger.warning(
                    "Listing for {} advertised page {} after page {}, stopping",
                    resource,
                    page.next_page,
                    page_number,
                )
                break

            page_number = page.next_page

        logger.debug("Listed {} {} across {} page(s)", len(items), resource, pages)
        return items
