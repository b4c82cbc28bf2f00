"""Tests for GitHubClient.

Tests cover:
- Endpoint choice by authentication mode
- Page assembly from the Link and x-ratelimit-* headers
- Skipping unparseable listing entries
- Core quota from GET /rate_limit
- Error translation
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from githubkit.exception import RequestFailed, RequestTimeout

from gitback.github.client import GitHubClient
from gitback.github.exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from gitback.github.rate_limit import RateLimitPool
from tests.factories import make_gist_payload, make_repo_payload
from tests.fixtures.rate_limit_responses import (
    LOW_WATER_HEADERS,
    TOKEN_HEADERS,
    TOKEN_QUOTA_BODY,
    make_link_header,
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def make_response(payload, headers=None):
    """Create a MagicMock that behaves like a githubkit Response."""
    response = MagicMock()
    response.json.return_value = payload
    response.headers = dict(headers or {})
    return response


def make_request_failed(status_code: int, headers=None) -> RequestFailed:
    response = MagicMock()
    response.status_code = status_code
    response.headers = dict(headers or {})
    return RequestFailed(response)


# -----------------------------------------------------------------------------
# Test Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_github():
    """Create a mock githubkit GitHub client."""
    with patch("gitback.github.client.GitHub") as mock_class:
        mock_instance = MagicMock()
        mock_class.return_value = mock_instance
        yield mock_instance


# -----------------------------------------------------------------------------
# Test: Initialization
# -----------------------------------------------------------------------------
class TestGitHubClientInit:
    """Tests for GitHubClient initialization."""

    def test_init_with_token(self):
        client = GitHubClient(token="test-token")

        assert client.is_authenticated

    @pytest.mark.parametrize("token", [None, ""])
    def test_init_anonymous(self, token):
        assert not GitHubClient(token=token).is_authenticated

    def test_github_created_lazily_with_timeout(self):
        with patch("gitback.github.client.GitHub") as mock_class:
            client = GitHubClient("test-token", timeout=12.0)
            mock_class.assert_not_called()

            _ = client._github

            mock_class.assert_called_once_with("test-token", timeout=12.0)

    async def test_context_manager_closes(self, mock_github):
        async with GitHubClient("test-token") as client:
            _ = client._github
        assert client._client is None


# -----------------------------------------------------------------------------
# Test: Rate limit
# -----------------------------------------------------------------------------
class TestGetRateLimit:
    """Tests for get_rate_limit."""

    async def test_core_pool_from_body(self, mock_github):
        mock_github.rest.rate_limit.async_get = AsyncMock(
            return_value=make_response(TOKEN_QUOTA_BODY)
        )

        rate = await GitHubClient("test-token").get_rate_limit()

        assert rate.pool == RateLimitPool.CORE
        assert rate.limit == 5000
        assert rate.remaining == 4500
        assert rate.used == 500
        assert rate.reset_at > datetime.now(UTC)

    async def test_body_without_core_pool(self, mock_github):
        body = {"resources": {"search": {"limit": 10, "remaining": 10, "reset": 0}}}
        mock_github.rest.rate_limit.async_get = AsyncMock(return_value=make_response(body))

        with pytest.raises(GitHubClientError, match="no core rate limit"):
            await GitHubClient().get_rate_limit()

    async def test_rejected_token(self, mock_github):
        mock_github.rest.rate_limit.async_get = AsyncMock(side_effect=make_request_failed(401))

        with pytest.raises(GitHubAuthenticationError):
            await GitHubClient("bad-token").get_rate_limit()


# -----------------------------------------------------------------------------
# Test: Identity
# -----------------------------------------------------------------------------
class TestAuthenticatedLogin:
    """Tests for get_authenticated_login."""

    async def test_returns_login(self, mock_github):
        response = MagicMock()
        response.parsed_data.login = "alice"
        mock_github.rest.users.async_get_authenticated = AsyncMock(return_value=response)

        assert await GitHubClient("test-token").get_authenticated_login() == "alice"

    async def test_requires_token(self, mock_github):
        with pytest.raises(GitHubAuthenticationError):
            await GitHubClient().get_authenticated_login()

        mock_github.rest.users.async_get_authenticated.assert_not_called()

    async def test_rejected_token(self, mock_github):
        mock_github.rest.users.async_get_authenticated = AsyncMock(
            side_effect=make_request_failed(401)
        )

        with pytest.raises(GitHubAuthenticationError, match="Invalid GitHub token"):
            await GitHubClient("bad-token").get_authenticated_login()


# -----------------------------------------------------------------------------
# Test: Repository listing
# -----------------------------------------------------------------------------
class TestListRepositoriesPage:
    """Tests for list_repositories_page."""

    async def test_authenticated_endpoint(self, mock_github):
        mock_github.rest.repos.async_list_for_authenticated_user = AsyncMock(
            return_value=make_response([make_repo_payload("tools")])
        )

        page = await GitHubClient("test-token").list_repositories_page(
            "alice", authenticated=True, page=2, per_page=50
        )

        mock_github.rest.repos.async_list_for_authenticated_user.assert_awaited_once_with(
            visibility="all",
            affiliation="owner",
            sort="pushed",
            direction="desc",
            per_page=50,
            page=2,
        )
        mock_github.rest.repos.async_list_for_user.assert_not_called()
        assert [r.name for r in page.items] == ["tools"]

    async def test_anonymous_endpoint(self, mock_github):
        mock_github.rest.repos.async_list_for_user = AsyncMock(
            return_value=make_response([make_repo_payload("a"), make_repo_payload("b")])
        )

        page = await GitHubClient().list_repositories_page("alice", authenticated=False)

        kwargs = mock_github.rest.repos.async_list_for_user.await_args.kwargs
        assert kwargs["username"] == "alice"
        assert kwargs["type"] == "owner"
        assert kwargs["page"] == 1
        assert kwargs["per_page"] == 100
        assert [r.name for r in page.items] == ["a", "b"]

    async def test_page_links_and_rate(self, mock_github):
        headers = {
            **LOW_WATER_HEADERS,
            "link": make_link_header("/users/alice/repos", next_page=2, last_page=3),
        }
        mock_github.rest.repos.async_list_for_user = AsyncMock(
            return_value=make_response([make_repo_payload()], headers)
        )

        page = await GitHubClient().list_repositories_page("alice", authenticated=False)

        assert page.next_page == 2
        assert not page.is_last
        assert page.rate is not None
        assert page.rate.remaining == 10

    async def test_last_page_without_headers(self, mock_github):
        mock_github.rest.repos.async_list_for_user = AsyncMock(return_value=make_response([]))

        page = await GitHubClient().list_repositories_page("alice", authenticated=False)

        assert page.items == []
        assert page.is_last
        assert page.rate is None

    async def test_unparseable_entry_skipped(self, mock_github):
        payload = [make_repo_payload("good"), make_repo_payload("bad", id="not-a-number")]
        mock_github.rest.repos.async_list_for_user = AsyncMock(
            return_value=make_response(payload, TOKEN_HEADERS)
        )

        page = await GitHubClient().list_repositories_page("alice", authenticated=False)

        assert [r.name for r in page.items] == ["good"]

    async def test_unknown_user(self, mock_github):
        mock_github.rest.repos.async_list_for_user = AsyncMock(
            side_effect=make_request_failed(404)
        )

        with pytest.raises(GitHubNotFoundError, match="User ghost not found"):
            await GitHubClient().list_repositories_page("ghost", authenticated=False)

    async def test_timeout_becomes_client_error(self, mock_github):
        mock_github.rest.repos.async_list_for_user = AsyncMock(
            side_effect=RequestTimeout(MagicMock())
        )

        with pytest.raises(GitHubClientError, match="GitHub request failed"):
            await GitHubClient().list_repositories_page("alice", authenticated=False)


# -----------------------------------------------------------------------------
# Test: Gist listing
# -----------------------------------------------------------------------------
class TestListGistsPage:
    """Tests for list_gists_page."""

    async def test_authenticated_endpoint(self, mock_github):
        mock_github.rest.gists.async_list = AsyncMock(
            return_value=make_response([make_gist_payload("g1")])
        )

        page = await GitHubClient("test-token").list_gists_page("alice", authenticated=True)

        mock_github.rest.gists.async_list.assert_awaited_once_with(per_page=100, page=1)
        assert [g.id for g in page.items] == ["g1"]

    async def test_anonymous_endpoint(self, mock_github):
        mock_github.rest.gists.async_list_for_user = AsyncMock(
            return_value=make_response([make_gist_payload("g1"), make_gist_payload("g2")])
        )

        page = await GitHubClient().list_gists_page("alice", authenticated=False, page=3)

        mock_github.rest.gists.async_list_for_user.assert_awaited_once_with(
            username="alice", per_page=100, page=3
        )
        assert [g.id for g in page.items] == ["g1", "g2"]

    async def test_payload_retained(self, mock_github):
        payload = make_gist_payload("g1", history=[{"version": "v1"}])
        mock_github.rest.gists.async_list_for_user = AsyncMock(
            return_value=make_response([payload])
        )

        page = await GitHubClient().list_gists_page("alice", authenticated=False)

        assert '"history"' in page.items[0].to_metadata_json()


# -----------------------------------------------------------------------------
# Test: Error translation
# -----------------------------------------------------------------------------
class TestHandleError:
    """Tests for _handle_error."""

    def test_unauthorized(self):
        error = GitHubClient()._handle_error(make_request_failed(401))

        assert isinstance(error, GitHubAuthenticationError)

    def test_rate_limited(self):
        reset_ts = int(datetime(2024, 1, 15, 13, 0, tzinfo=UTC).timestamp())
        error = GitHubClient()._handle_error(
            make_request_failed(
                403,
                {"x-ratelimit-remaining": "0", "x-ratelimit-reset": str(reset_ts)},
            )
        )

        assert isinstance(error, GitHubRateLimitError)
        assert error.reset_at == datetime(2024, 1, 15, 13, 0, tzinfo=UTC)

    def test_forbidden_with_quota_left(self):
        error = GitHubClient()._handle_error(
            make_request_failed(403, {"x-ratelimit-remaining": "42"})
        )

        assert isinstance(error, GitHubAuthenticationError)

    def test_secondary_rate_limit(self):
        error = GitHubClient()._handle_error(make_request_failed(429))

        assert type(error) is GitHubClientError

    def test_not_found(self):
        error = GitHubClient()._handle_error(make_request_failed(404))

        assert isinstance(error, GitHubNotFoundError)

    def test_server_error(self):
        error = GitHubClient()._handle_error(make_request_failed(502))

        assert type(error) is GitHubClientError
        assert "502" in str(error)
