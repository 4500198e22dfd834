# ABOUTME: OAuth2 token lifecycle for the Bangumi API.
# ABOUTME: Authorization-code exchange, lazy refresh-if-needed, forced refresh, and liveness probe.

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from animeta.auth.credentials import Credentials, utcnow
from animeta.auth.token_store import TokenStore
from animeta.errors import AuthError, AuthErrorKind
from animeta.metadata.http import HttpClient, HttpStatusError, MetadataFetchError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://bgm.tv/oauth/access_token"
AUTHORIZE_URL = "https://bgm.tv/oauth/authorize"
ME_URL = "https://api.bgm.tv/v0/me"

REFRESH_THRESHOLD = timedelta(days=3)
_FALLBACK_EXPIRES_IN = 60


class TokenState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


def build_authorize_url(client_id: str, redirect_uri: str | None = None) -> str:
    """Build the URL a user visits to obtain an authorization code."""
    params = {"client_id": client_id, "response_type": "code"}
    if redirect_uri:
        params["redirect_uri"] = redirect_uri
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


class BangumiTokenManager:
    """Owns the OAuth2 flows against bgm.tv.

    There is no background timer: `ensure_valid` runs on the request path
    before each search and refreshes only when the access token is missing or
    within `refresh_threshold` of expiring. Successful grants are pushed into
    the TokenStore, which persists them.
    """

    def __init__(
        self,
        http_client: HttpClient,
        store: TokenStore | None = None,
        *,
        redirect_uri: str | None = None,
        refresh_threshold: timedelta = REFRESH_THRESHOLD,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._http = http_client
        self._store = store
        self.redirect_uri = redirect_uri
        self._threshold = refresh_threshold
        self._clock = clock
        self._refreshing = False

    def needs_refresh(self, credentials: Credentials) -> bool:
        """True when the access token is empty, undated, or near expiry."""
        if not credentials.access_token or credentials.expires_at is None:
            return True
        return self._clock() >= credentials.expires_at - self._threshold

    def state(self, credentials: Credentials) -> TokenState:
        if self._refreshing:
            return TokenState.REFRESHING
        if credentials.is_access_valid(self._clock()):
            return TokenState.AUTHENTICATED
        return TokenState.UNAUTHENTICATED

    async def ensure_valid(self, credentials: Credentials) -> Credentials:
        """Return usable credentials, refreshing first if needed.

        Returns the very same object when no refresh is needed.

        Raises:
            AuthError: REFRESH_FAILED. The caller should keep using the
                credentials it passed in and let the request fail naturally.
        """
        if not self.needs_refresh(credentials):
            return credentials
        return await self.refresh(credentials)

    async def refresh(self, credentials: Credentials) -> Credentials:
        """Run the refresh-token grant unconditionally.

        Raises:
            AuthError: REFRESH_FAILED when no refresh token or client is
                configured, or the grant fails. The input is left untouched.
        """
        if not credentials.refresh_token:
            raise AuthError(AuthErrorKind.REFRESH_FAILED, "No Bangumi refresh token configured")
        if not credentials.has_client:
            raise AuthError(AuthErrorKind.REFRESH_FAILED, "Bangumi client id/secret missing")

        logger.info("Refreshing Bangumi access token")
        self._refreshing = True
        try:
            payload = await self._request_token(
                {
                    "grant_type": "refresh_token",
                    "refresh_token": credentials.refresh_token,
                    "client_id": credentials.client_id,
                    "client_secret": credentials.client_secret,
                },
                AuthErrorKind.REFRESH_FAILED,
            )
        finally:
            self._refreshing = False

        updated = self._apply_token_response(credentials, payload)
        self._publish(updated)
        return updated

    async def exchange_authorization_code(
        self, code: str, credentials: Credentials
    ) -> Credentials:
        """Trade a one-time authorization code for an access/refresh pair.

        Raises:
            AuthError: EXCHANGE_FAILED on transport failure, non-2xx, or a
                response without an access token. The input is not mutated.
        """
        code = (code or "").strip()
        if not code:
            raise AuthError(AuthErrorKind.EXCHANGE_FAILED, "Authorization code is empty")
        if not credentials.has_client:
            raise AuthError(AuthErrorKind.EXCHANGE_FAILED, "Bangumi client id/secret missing")

        form = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        if self.redirect_uri:
            form["redirect_uri"] = self.redirect_uri

        payload = await self._request_token(form, AuthErrorKind.EXCHANGE_FAILED)
        updated = self._apply_token_response(credentials, payload)
        logger.info("Exchanged Bangumi authorization code, token valid until %s", updated.expires_at)
        self._publish(updated)
        return updated

    async def validate(self, credentials: Credentials) -> bool:
        """Probe the "who am I" endpoint. Only used after a grant."""
        if not credentials.access_token:
            return False
        try:
            await self._http.get(
                ME_URL, headers={"Authorization": f"Bearer {credentials.access_token}"}
            )
        except MetadataFetchError as exc:
            logger.warning("Bangumi token validation failed: %s", exc)
            return False
        return True

    async def _request_token(self, form: dict[str, str], kind: AuthErrorKind) -> dict[str, Any]:
        try:
            result = await self._http.post_form(TOKEN_URL, data=form)
            payload = result.json()
        except HttpStatusError as exc:
            raise AuthError(kind, f"Token endpoint returned HTTP {exc.status_code}") from exc
        except MetadataFetchError as exc:
            raise AuthError(kind, f"Token request failed: {exc}") from exc

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthError(kind, "Token response did not contain an access token")
        return payload

    def _apply_token_response(
        self, credentials: Credentials, payload: dict[str, Any]
    ) -> Credentials:
        expires_in = payload.get("expires_in")
        try:
            seconds = int(expires_in)
        except (TypeError, ValueError):
            seconds = 0
        if seconds <= 0:
            seconds = _FALLBACK_EXPIRES_IN
        return credentials.with_tokens(
            access_token=str(payload["access_token"]),
            # Some grants omit the refresh token; the old one stays usable.
            refresh_token=str(payload.get("refresh_token") or credentials.refresh_token),
            expires_at=self._clock() + timedelta(seconds=seconds),
        )

    def _publish(self, credentials: Credentials) -> None:
        if self._store is not None:
            self._store.replace_credentials(credentials)
