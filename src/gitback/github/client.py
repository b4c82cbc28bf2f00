"""Async GitHub API client wrapper using githubkit.

This module provides the narrow slice of the GitHub REST API the backup
needs: resolving the authenticated login, and page-at-a-time listing of
repositories and gists with the quota state of each response.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from githubkit import GitHub
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from pydantic import ValidationError

from gitback.logging import get_logger
from gitback.schemas import GistDescriptor, RepositoryDescriptor

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from .pagination import Page, parse_next_page
from .rate_limit.schemas import PoolRateLimit, RateLimitSnapshot

logger = get_logger(__name__)


class GitHubClient:
    """Async GitHub API client for backup listings.

    Usage:
        async with GitHubClient(token) as client:
            login = await client.get_authenticated_login()
            page = await client.list_repositories_page(login, authenticated=True)

    Without a token the client is anonymous and may only call the
    username-scoped endpoints.
    """

    def __init__(self, token: str | None = None, *, timeout: float = 30.0) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub PAT, or None for anonymous access
            timeout: Request timeout in seconds
        """
        self._token = token or None
        self._timeout = timeout
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            self._client = GitHub(self._token, timeout=self._timeout)
        return self._client

    @property
    def is_authenticated(self) -> bool:
        """Whether requests carry a token."""
        return self._token is not None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client = None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Identity & Rate Limit
    # -------------------------------------------------------------------------
    async def get_authenticated_login(self) -> str:
        """Resolve the login of the token owner (GET /user).

        Raises:
            GitHubAuthenticationError: If the token is missing or rejected
        """
        if not self.is_authenticated:
            raise GitHubAuthenticationError("Cannot resolve the authenticated user without a token")
        try:
            resp = await self._github.rest.users.async_get_authenticated()
        except RequestFailed as e:
            raise self._handle_error(e) from e
        except (RequestError, RequestTimeout) as e:
            raise GitHubClientError(f"GitHub request failed: {e}") from e
        return resp.parsed_data.login

    async def get_rate_limit(self) -> PoolRateLimit:
        """Get current core rate limit status (GET /rate_limit, free of charge)."""
        try:
            resp = await self._github.rest.rate_limit.async_get()
        except RequestFailed as e:
            raise self._handle_error(e) from e
        except (RequestError, RequestTimeout) as e:
            raise GitHubClientError(f"GitHub request failed: {e}") from e
        core = RateLimitSnapshot.from_api_response(resp.json()).get_core()
        if core is None:
            raise GitHubClientError("GitHub returned no core rate limit")
        return core

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------
    async def list_repositories_page(
        self,
        username: str,
        *,
        authenticated: bool,
        page: int = 1,
        per_page: int = 100,
    ) -> Page[RepositoryDescriptor]:
        """Fetch one page of repositories owned by the user.

        Authenticated runs use GET /user/repos (private repositories
        included); anonymous runs use GET /users/{username}/repos.

        Args:
            username: Account whose repositories are listed
            authenticated: Use the authenticated-identity endpoint
            page: 1-based page number
            per_page: Results per page (max 100)
        """
        try:
            if authenticated:
                resp = await self._github.rest.repos.async_list_for_authenticated_user(
                    visibility="all",
                    affiliation="owner",
                    sort="pushed",
                    direction="desc",
                    per_page=per_page,
                    page=page,
                )
            else:
                resp = await self._github.rest.repos.async_list_for_user(
                    username=username,
                    type="owner",
                    sort="pushed",
                    direction="desc",
                    per_page=per_page,
                    page=page,
                )
        except RequestFailed as e:
            if e.response.status_code == 404:
                raise GitHubNotFoundError(f"User {username} not found") from e
            raise self._handle_error(e) from e
        except (RequestError, RequestTimeout) as e:
            raise GitHubClientError(f"GitHub request failed: {e}") from e

        items: list[RepositoryDescriptor] = []
        for data in resp.json():
            try:
                items.append(RepositoryDescriptor.model_validate(data))
            except ValidationError as e:
                logger.warning("Skipping unparseable repository entry: {}", e)
        return self._build_page(resp, items)

    async def list_gists_page(
        self,
        username: str,
        *,
        authenticated: bool,
        page: int = 1,
        per_page: int = 100,
    ) -> Page[GistDescriptor]:
        """Fetch one page of gists.

        Authenticated runs use GET /gists (secret gists included); anonymous
        runs use GET /users/{username}/gists. Owner filtering is left to
        the caller.
        """
        try:
            if authenticated:
                resp = await self._github.rest.gists.async_list(per_page=per_page, page=page)
            else:
                resp = await self._github.rest.gists.async_list_for_user(
                    username=username,
                    per_page=per_page,
                    page=page,
                )
        except RequestFailed as e:
            if e.response.status_code == 404:
                raise GitHubNotFoundError(f"User {username} not found") from e
            raise self._handle_error(e) from e
        except (RequestError, RequestTimeout) as e:
            raise GitHubClientError(f"GitHub request failed: {e}") from e

        items: list[GistDescriptor] = []
        for data in resp.json():
            try:
                items.append(GistDescriptor.from_api(data))
            except ValidationError as e:
                logger.warning("Skipping unparseable gist entry: {}", e)
        return self._build_page(resp, items)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def _rate_from_response(response: Any) -> PoolRateLimit | None:
        """Extract quota state from response headers (None if absent)."""
        headers = getattr(response, "headers", None)
        if headers is None or "x-ratelimit-remaining" not in headers:
            return None
        try:
            snapshot = RateLimitSnapshot.from_response_headers(dict(headers.items()))
        except (ValueError, ValidationError) as e:
            logger.debug("Ignoring malformed rate limit headers: {}", e)
            return None
        return snapshot.primary()

    def _build_page(self, response: Any, items: list[Any]) -> Page[Any]:
        return Page(
            items=items,
            next_page=parse_next_page(response.headers.get("link")),
            rate=self._rate_from_response(response),
        )

    def _handle_error(self, error: RequestFailed) -> GitHubClientError:
        """Convert githubkit exceptions to our custom exceptions."""
        status = error.response.status_code

        if status == 401:
            return GitHubAuthenticationError("Invalid GitHub token")
        elif status in (403, 429):
            headers = error.response.headers
            if "x-ratelimit-remaining" in headers:
                remaining = int(headers.get("x-ratelimit-remaining", "0"))
                if remaining == 0:
                    reset_ts = int(headers.get("x-ratelimit-reset", "0"))
                    reset_at = datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts else None
                    return GitHubRateLimitError(
                        "GitHub rate limit exceeded",
                        reset_at=reset_at,
                    )
            if status == 403:
                return GitHubAuthenticationError(f"Access forbidden: {error}")
            return GitHubClientError(f"GitHub API error ({status}): {error}")
        elif status == 404:
            return GitHubNotFoundError(str(error))
        else:
            return GitHubClientError(f"GitHub API error ({status}): {error}")
