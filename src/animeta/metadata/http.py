# ABOUTME: Async HTTP client abstraction shared by the Bangumi and Hanime clients.
# ABOUTME: Provides retry with backoff, status-aware errors, and injectable transport for testing.

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

_MAX_REDIRECTS = 10

DEFAULT_USER_AGENT = "animeta/0.1.0 (https://github.com/animeta/animeta)"


class MetadataFetchError(Exception):
    """Raised when a request could not be completed (network, timeout, bad body)."""


class HttpStatusError(MetadataFetchError):
    """Raised when the upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str, body: str = "") -> None:
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url
        self.body = body


@dataclass
class HttpResult:
    """A completed 2xx response, decoupled from httpx for the callers."""

    status_code: int
    text: str
    url: str
    cookies: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise MetadataFetchError(f"Malformed JSON from {self.url}: {exc}") from exc


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the HTTP operations the source clients need."""

    async def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResult: ...

    async def post_form(
        self,
        url: str,
        data: dict[str, str],
        headers: dict[str, str] | None = None,
    ) -> HttpResult: ...


class AnimetaHttpClient:
    """HTTP client with retry for upstream metadata calls.

    Wraps httpx.AsyncClient with retry logic for transient failures
    (429, 5xx). Cookies are never persisted between requests; callers attach
    a Cookie header explicitly so that one session never leaks into another.
    Redirects are followed by hand so that header survives each hop.
    """

    def __init__(
        self,
        *,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": DEFAULT_USER_AGENT},
            "timeout": timeout,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    async def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResult:
        """Send a GET request with retry.

        Raises:
            HttpStatusError: On non-retryable statuses or exhausted retries.
            MetadataFetchError: On network failures.
        """
        return await self._send("GET", url, params=params, headers=headers)

    async def post_form(
        self,
        url: str,
        data: dict[str, str],
        headers: dict[str, str] | None = None,
    ) -> HttpResult:
        """Send a form-encoded POST. Not retried: grants are single-use."""
        return await self._send("POST", url, data=data, headers=headers, retry=False)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AnimetaHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        retry: bool = True,
    ) -> HttpResult:
        attempts = 1 + (self._max_retries if retry else 0)
        response: httpx.Response | None = None
        for attempt in range(attempts):
            logger.debug("%s %s (attempt %d/%d)", method, url, attempt + 1, attempts)
            try:
                hops = await self._request_following_redirects(
                    method, url, params=params, data=data, headers=headers
                )
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise MetadataFetchError(f"Request failed: {url}: {exc}") from exc
            finally:
                # Cookies land in the shared jar otherwise.
                self._client.cookies.clear()

            response = hops[-1]
            if response.is_success:
                return HttpResult(
                    status_code=response.status_code,
                    text=response.text,
                    url=str(response.url),
                    cookies=_response_cookies(hops),
                )

            if response.status_code not in _RETRYABLE_STATUS_CODES:
                raise HttpStatusError(response.status_code, url, response.text)

            if attempt < attempts - 1:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code,
                    url,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                await asyncio.sleep(delay)

        assert response is not None
        raise HttpStatusError(response.status_code, url, response.text)

    async def _request_following_redirects(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None,
        data: dict[str, str] | None,
        headers: dict[str, str] | None,
    ) -> list[httpx.Response]:
        """Send a request and follow redirects, returning every hop in order.

        httpx drops an explicit Cookie header when it follows a redirect, so
        hops are followed here and the caller's cookie is re-attached on each
        same-host hop.
        """
        cookie = (headers or {}).get("Cookie")
        response = await self._client.request(
            method, url, params=params, data=data, headers=headers, follow_redirects=False
        )
        hops = [response]
        while response.next_request is not None:
            if len(hops) > _MAX_REDIRECTS:
                raise MetadataFetchError(f"Too many redirects from {url}")
            next_request = response.next_request
            if cookie and next_request.url.host == response.url.host:
                jar_cookie = next_request.headers.get("Cookie")
                next_request.headers["Cookie"] = f"{cookie}; {jar_cookie}" if jar_cookie else cookie
            logger.debug("Following redirect to %s", next_request.url)
            response = await self._client.send(next_request, follow_redirects=False)
            hops.append(response)
        return hops


def _response_cookies(hops: list[httpx.Response]) -> dict[str, str]:
    """Collect Set-Cookie values from every hop of a redirect chain."""
    cookies: dict[str, str] = {}
    for hop in hops:
        for cookie in hop.cookies.jar:
            if cookie.value is not None:
                cookies[cookie.name] = cookie.value
    return cookies
