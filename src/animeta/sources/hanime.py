# ABOUTME: Hanime metadata source that scrapes hanime1.me, which has no public API.
# ABOUTME: Browser-like search, first watch-link selection, og-meta detail, and cookie login.

import logging

from animeta.auth.credentials import SessionCredential
from animeta.errors import ScrapeError, ScrapeErrorKind
from animeta.metadata.http import HttpClient, HttpResult, HttpStatusError, MetadataFetchError
from animeta.metadata.types import CandidateResult, MetadataRecord, SearchQuery
from animeta.sources.hanime_parser import (
    SOURCE_NAME,
    find_csrf_token,
    find_watch_link,
    is_login_wall,
    is_signed_in,
    parse_watch_page,
    video_id,
)

logger = logging.getLogger(__name__)

_SITE_BASE = "https://hanime1.me"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-TW,zh;q=0.9,ja;q=0.8,en;q=0.7",
}


def cookie_header(cookies: dict[str, str]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


class HanimeClient:
    """Metadata source for hanime1.me.

    Only the current known page structure is targeted; all extraction goes
    through `hanime_parser` so this class never sees a regex.
    """

    def __init__(self, http_client: HttpClient, *, site_base: str = _SITE_BASE) -> None:
        self._http = http_client
        self._base = site_base.rstrip("/")

    @property
    def name(self) -> str:
        return SOURCE_NAME

    async def search(
        self, query: SearchQuery, auth: SessionCredential | None = None
    ) -> list[CandidateResult]:
        """Locate the first watch page for a title.

        Returns at most one candidate. A page without any watch link is a
        miss and yields an empty list.

        Raises:
            ScrapeError: UNAUTHENTICATED on a login wall, TRANSPORT otherwise.
        """
        page = await self._fetch_page(
            f"{self._base}/search", auth, params={"query": query.title}
        )
        watch_url = find_watch_link(page.text, self._base + "/")
        if watch_url is None:
            logger.debug("Hanime search miss for %r", query.title)
            return []

        return [
            CandidateResult(
                name=query.title,
                source=SOURCE_NAME,
                source_id=video_id(watch_url),
                url=watch_url,
            )
        ]

    async def fetch_detail(
        self, ref: str, auth: SessionCredential | None = None
    ) -> MetadataRecord:
        """Scrape title, description and image from a watch page.

        Partial extraction is a normal outcome.

        Raises:
            ScrapeError: UNAUTHENTICATED on a login wall, NOT_FOUND on a 404
                or a page with none of the expected tags, TRANSPORT otherwise.
        """
        page = await self._fetch_page(ref, auth)
        record = parse_watch_page(page.text, ref)
        if record.is_empty:
            raise ScrapeError(ScrapeErrorKind.NOT_FOUND, f"No metadata tags on {ref}")
        return record

    async def login(self, username: str, password: str) -> SessionCredential:
        """Sign in with a username/password pair and return a cookie session.

        Raises:
            ScrapeError: UNAUTHENTICATED when the site rejects the login,
                TRANSPORT on network failures.
        """
        login_url = f"{self._base}/login"
        form_page = await self._fetch_page(login_url, None, allow_login_wall=True)
        token = find_csrf_token(form_page.text)
        if token is None:
            raise ScrapeError(ScrapeErrorKind.TRANSPORT, "Login form has no CSRF token")

        cookies = dict(form_page.cookies)
        headers = {**BROWSER_HEADERS, "Referer": login_url}
        if cookies:
            headers["Cookie"] = cookie_header(cookies)
        try:
            result = await self._http.post_form(
                login_url,
                data={"_token": token, "email": username, "password": password, "remember": "on"},
                headers=headers,
            )
        except HttpStatusError as exc:
            if exc.status_code in (401, 403, 419, 422):
                raise ScrapeError(
                    ScrapeErrorKind.UNAUTHENTICATED, f"Hanime login rejected ({exc.status_code})"
                ) from exc
            raise ScrapeError(ScrapeErrorKind.TRANSPORT, str(exc)) from exc
        except MetadataFetchError as exc:
            raise ScrapeError(ScrapeErrorKind.TRANSPORT, f"Hanime login failed: {exc}") from exc

        if is_login_wall(result.text):
            raise ScrapeError(ScrapeErrorKind.UNAUTHENTICATED, "Hanime rejected the credentials")
        cookies.update(result.cookies)
        if not any(name.endswith("_session") or name.startswith("remember_") for name in cookies):
            raise ScrapeError(ScrapeErrorKind.UNAUTHENTICATED, "Hanime login returned no session")

        logger.info("Signed in to Hanime as %s", username)
        return SessionCredential(cookie=cookie_header(cookies), username=username, password=password)

    async def validate(self, session: SessionCredential) -> bool:
        """Probe the site root and report whether the session is signed in."""
        if not session.cookie:
            return False
        try:
            page = await self._fetch_page(self._base + "/", session, allow_login_wall=True)
        except ScrapeError as exc:
            logger.warning("Hanime session probe failed: %s", exc)
            return False
        return is_signed_in(page.text)

    async def _fetch_page(
        self,
        url: str,
        session: SessionCredential | None,
        *,
        params: dict[str, str] | None = None,
        allow_login_wall: bool = False,
    ) -> HttpResult:
        headers = dict(BROWSER_HEADERS)
        if session is not None and session.cookie:
            headers["Cookie"] = session.cookie
        try:
            result = await self._http.get(url, params=params, headers=headers)
        except HttpStatusError as exc:
            if exc.status_code == 404:
                raise ScrapeError(ScrapeErrorKind.NOT_FOUND, f"Not found: {url}") from exc
            if exc.status_code in (401, 403) and is_login_wall(exc.body):
                raise ScrapeError(ScrapeErrorKind.UNAUTHENTICATED, f"Login required: {url}") from exc
            raise ScrapeError(ScrapeErrorKind.TRANSPORT, str(exc)) from exc
        except MetadataFetchError as exc:
            raise ScrapeError(ScrapeErrorKind.TRANSPORT, f"Hanime request failed: {exc}") from exc

        if not allow_login_wall and is_login_wall(result.text):
            raise ScrapeError(ScrapeErrorKind.UNAUTHENTICATED, f"Login required: {url}")
        return result
