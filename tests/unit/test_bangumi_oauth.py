# ABOUTME: Unit tests for the Bangumi OAuth2 token manager.
# ABOUTME: Covers the refresh threshold, refresh and exchange grants, persistence, and validation.

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from animeta.auth.bangumi_oauth import (
    ME_URL,
    TOKEN_URL,
    BangumiTokenManager,
    TokenState,
    build_authorize_url,
)
from animeta.auth.credentials import Credentials
from animeta.auth.token_store import TokenStore
from animeta.errors import AuthError, AuthErrorKind
from animeta.metadata.http import MetadataFetchError
from tests.fakes import FIXED_NOW, FakeHttpClient, json_result, status_error
from tests.fixtures.bangumi_responses import (
    ME_RESPONSE,
    TOKEN_RESPONSE,
    TOKEN_RESPONSE_NO_REFRESH,
)


def _creds(expires_in: timedelta | None = timedelta(days=7), access: str = "old-access") -> Credentials:
    return Credentials(
        client_id="app-id",
        client_secret="app-secret",
        access_token=access,
        refresh_token="old-refresh",
        expires_at=FIXED_NOW + expires_in if expires_in is not None else None,
    )


class RecordingPersistence:
    def __init__(self) -> None:
        self.saved: list[Credentials] = []

    def save_credentials(self, credentials: Credentials) -> None:
        self.saved.append(credentials)

    def save_session(self, session) -> None:
        pass


class TestAuthorizeUrl:
    """Tests for the browser authorization URL."""

    def test_contains_client_and_response_type(self) -> None:
        url = build_authorize_url("app-id")
        query = parse_qs(urlparse(url).query)
        assert url.startswith("https://bgm.tv/oauth/authorize?")
        assert query == {"client_id": ["app-id"], "response_type": ["code"]}

    def test_includes_redirect_uri_when_set(self) -> None:
        url = build_authorize_url("app-id", "http://localhost:8080/cb")
        assert parse_qs(urlparse(url).query)["redirect_uri"] == ["http://localhost:8080/cb"]


class TestNeedsRefresh:
    """Tests for the proactive refresh threshold."""

    def test_far_from_expiry(self, clock) -> None:
        manager = BangumiTokenManager(FakeHttpClient(), clock=clock)
        assert manager.needs_refresh(_creds(timedelta(days=3, seconds=1))) is False

    def test_exactly_at_threshold(self, clock) -> None:
        manager = BangumiTokenManager(FakeHttpClient(), clock=clock)
        assert manager.needs_refresh(_creds(timedelta(days=3))) is True

    def test_empty_access_token(self, clock) -> None:
        manager = BangumiTokenManager(FakeHttpClient(), clock=clock)
        assert manager.needs_refresh(_creds(access="")) is True

    def test_unknown_expiry(self, clock) -> None:
        manager = BangumiTokenManager(FakeHttpClient(), clock=clock)
        assert manager.needs_refresh(_creds(expires_in=None)) is True


class TestEnsureValid:
    """Tests for lazy refresh-if-needed."""

    @pytest.mark.asyncio
    async def test_noop_when_far_from_expiry(self, clock) -> None:
        """More than 3 days left: same object back and no network call."""
        http = FakeHttpClient()
        manager = BangumiTokenManager(http, clock=clock)
        creds = _creds(timedelta(days=10))

        result = await manager.ensure_valid(creds)

        assert result is creds
        assert http.requests == []

    @pytest.mark.asyncio
    async def test_refreshes_within_threshold(self, clock) -> None:
        """Within 3 days: exactly one refresh request with the refresh grant."""
        http = FakeHttpClient({TOKEN_URL: json_result(TOKEN_RESPONSE)})
        manager = BangumiTokenManager(http, clock=clock)

        result = await manager.ensure_valid(_creds(timedelta(days=2)))

        assert len(http.requests) == 1
        request = http.requests[0]
        assert request.method == "POST"
        assert request.data == {
            "grant_type": "refresh_token",
            "refresh_token": "old-refresh",
            "client_id": "app-id",
            "client_secret": "app-secret",
        }
        assert result.access_token == "new-access-token"
        assert result.refresh_token == "new-refresh-token"
        assert result.expires_at == FIXED_NOW + timedelta(seconds=604800)

    @pytest.mark.asyncio
    async def test_refreshes_when_access_token_empty(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: json_result(TOKEN_RESPONSE)})
        manager = BangumiTokenManager(http, clock=clock)

        result = await manager.ensure_valid(_creds(timedelta(days=30), access=""))

        assert len(http.requests) == 1
        assert result.access_token == "new-access-token"


class TestRefresh:
    """Tests for the unconditional refresh grant."""

    @pytest.mark.asyncio
    async def test_keeps_refresh_token_when_omitted(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: json_result(TOKEN_RESPONSE_NO_REFRESH)})
        manager = BangumiTokenManager(http, clock=clock)

        result = await manager.refresh(_creds())

        assert result.refresh_token == "old-refresh"

    @pytest.mark.asyncio
    async def test_missing_refresh_token_fails_without_request(self, clock) -> None:
        http = FakeHttpClient()
        manager = BangumiTokenManager(http, clock=clock)
        creds = Credentials(client_id="app-id", client_secret="app-secret")

        with pytest.raises(AuthError) as exc_info:
            await manager.refresh(creds)

        assert exc_info.value.kind is AuthErrorKind.REFRESH_FAILED
        assert http.requests == []

    @pytest.mark.asyncio
    async def test_rejected_grant_raises_refresh_failed(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: status_error(400, TOKEN_URL, '{"error":"invalid_grant"}')})
        manager = BangumiTokenManager(http, clock=clock)

        with pytest.raises(AuthError, match="HTTP 400") as exc_info:
            await manager.refresh(_creds())
        assert exc_info.value.kind is AuthErrorKind.REFRESH_FAILED

    @pytest.mark.asyncio
    async def test_publishes_to_store(self, clock) -> None:
        """A successful grant replaces and persists the stored credentials."""
        persistence = RecordingPersistence()
        store = TokenStore(_creds(), persistence=persistence)
        http = FakeHttpClient({TOKEN_URL: json_result(TOKEN_RESPONSE)})
        manager = BangumiTokenManager(http, store, clock=clock)

        result = await manager.refresh(store.credentials)

        assert store.credentials is result
        assert persistence.saved == [result]

    @pytest.mark.asyncio
    async def test_state_returns_to_idle_after_failure(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: MetadataFetchError("boom")})
        manager = BangumiTokenManager(http, clock=clock)
        creds = _creds(timedelta(days=1))

        with pytest.raises(AuthError):
            await manager.refresh(creds)

        assert manager.state(creds) is TokenState.AUTHENTICATED


class TestExchangeAuthorizationCode:
    """Tests for the authorization-code grant."""

    @pytest.mark.asyncio
    async def test_exchange_success(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: json_result(TOKEN_RESPONSE)})
        manager = BangumiTokenManager(http, redirect_uri="http://localhost/cb", clock=clock)
        creds = Credentials(client_id="app-id", client_secret="app-secret")

        result = await manager.exchange_authorization_code(" the-code ", creds)

        form = http.requests[0].data
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "the-code"
        assert form["redirect_uri"] == "http://localhost/cb"
        assert result.access_token == "new-access-token"
        assert result.client_id == "app-id"

    @pytest.mark.asyncio
    async def test_exchange_failure_leaves_credentials_untouched(self, clock) -> None:
        """A rejected code raises EXCHANGE_FAILED and persists nothing."""
        persistence = RecordingPersistence()
        original = Credentials(client_id="app-id", client_secret="app-secret")
        store = TokenStore(original, persistence=persistence)
        http = FakeHttpClient({TOKEN_URL: status_error(400, TOKEN_URL)})
        manager = BangumiTokenManager(http, store, clock=clock)

        with pytest.raises(AuthError) as exc_info:
            await manager.exchange_authorization_code("bad-code", original)

        assert exc_info.value.kind is AuthErrorKind.EXCHANGE_FAILED
        assert store.credentials is original
        assert original.access_token == ""
        assert persistence.saved == []

    @pytest.mark.asyncio
    async def test_response_without_access_token(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: json_result({"error": "invalid_client"})})
        manager = BangumiTokenManager(http, clock=clock)
        creds = Credentials(client_id="app-id", client_secret="app-secret")

        with pytest.raises(AuthError, match="access token"):
            await manager.exchange_authorization_code("code", creds)

    @pytest.mark.asyncio
    async def test_missing_client_fails_without_request(self, clock) -> None:
        http = FakeHttpClient()
        manager = BangumiTokenManager(http, clock=clock)

        with pytest.raises(AuthError) as exc_info:
            await manager.exchange_authorization_code("code", Credentials())

        assert exc_info.value.kind is AuthErrorKind.EXCHANGE_FAILED
        assert http.requests == []

    @pytest.mark.asyncio
    async def test_non_positive_expiry_uses_fallback(self, clock) -> None:
        http = FakeHttpClient({TOKEN_URL: json_result({"access_token": "t", "expires_in": 0})})
        manager = BangumiTokenManager(http, clock=clock)
        creds = Credentials(client_id="app-id", client_secret="app-secret")

        result = await manager.exchange_authorization_code("code", creds)

        assert result.expires_at == FIXED_NOW + timedelta(seconds=60)


class TestValidate:
    """Tests for the liveness probe."""

    @pytest.mark.asyncio
    async def test_live_token(self, clock) -> None:
        http = FakeHttpClient({ME_URL: json_result(ME_RESPONSE)})
        manager = BangumiTokenManager(http, clock=clock)

        assert await manager.validate(_creds()) is True
        assert http.requests[0].headers["Authorization"] == "Bearer old-access"

    @pytest.mark.asyncio
    async def test_rejected_token(self, clock) -> None:
        http = FakeHttpClient({ME_URL: status_error(401, ME_URL)})
        manager = BangumiTokenManager(http, clock=clock)

        assert await manager.validate(_creds()) is False

    @pytest.mark.asyncio
    async def test_empty_token_skips_probe(self, clock) -> None:
        http = FakeHttpClient()
        manager = BangumiTokenManager(http, clock=clock)

        assert await manager.validate(_creds(access="")) is False
        assert http.requests == []
