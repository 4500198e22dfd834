# ABOUTME: Bangumi metadata source backed by the api.bgm.tv JSON API.
# ABOUTME: Searches anime subjects by title and fetches full subject detail by id.

import logging
from urllib.parse import quote

from animeta.errors import SearchError, SearchErrorKind
from animeta.metadata.http import HttpClient, HttpResult, HttpStatusError, MetadataFetchError
from animeta.metadata.types import CandidateResult, MetadataRecord, SearchQuery
from animeta.sources.bangumi_parser import (
    SOURCE_NAME,
    BangumiParseError,
    parse_search_results,
    parse_subject,
)

logger = logging.getLogger(__name__)

_API_BASE = "https://api.bgm.tv"
_SUBJECT_TYPE_ANIME = "2"
_UNAUTHORIZED_STATUSES = {401, 403}


class BangumiClient:
    """Metadata source for the structured Bangumi API.

    Never refreshes tokens itself: an expired token surfaces as an
    UNAUTHORIZED SearchError and the orchestrator decides whether to refresh
    and retry.
    """

    def __init__(self, http_client: HttpClient, *, api_base: str = _API_BASE) -> None:
        self._http = http_client
        self._api_base = api_base.rstrip("/")

    @property
    def name(self) -> str:
        return SOURCE_NAME

    async def search(
        self, query: SearchQuery, auth: str | None = None
    ) -> list[CandidateResult]:
        """Search anime subjects by title.

        Returns candidates in upstream relevance order, or an empty list when
        the upstream answered successfully with no hits.

        Raises:
            SearchError: UNAUTHORIZED on 401/403, TRANSPORT on network, status or
                JSON decoding failures, PARSE on an unexpected document shape.
        """
        url = f"{self._api_base}/search/subject/{quote(query.title, safe='')}"
        params = {"type": _SUBJECT_TYPE_ANIME, "responseGroup": "small"}
        try:
            result = await self._http.get(url, params=params, headers=_auth_headers(auth))
        except HttpStatusError as exc:
            if exc.status_code == 404:
                # The legacy search endpoint answers a miss with 404.
                logger.debug("Bangumi search miss for %r", query.title)
                return []
            raise _status_error(exc) from exc
        except MetadataFetchError as exc:
            raise SearchError(SearchErrorKind.TRANSPORT, f"Bangumi search failed: {exc}") from exc

        data = _decode(result)
        try:
            candidates = parse_search_results(data)
        except BangumiParseError as exc:
            raise SearchError(SearchErrorKind.PARSE, f"Unexpected search response: {exc}") from exc

        logger.debug("Bangumi search %r returned %d candidate(s)", query.title, len(candidates))
        return candidates

    async def fetch_detail(self, ref: str, auth: str | None = None) -> MetadataRecord:
        """Fetch the full subject document for a known subject id.

        Raises:
            SearchError: UNAUTHORIZED on 401/403, TRANSPORT on network or
                status failures (including an unknown id), PARSE on an
                unexpected document shape.
        """
        subject_id = str(ref).strip()
        url = f"{self._api_base}/v0/subjects/{quote(subject_id, safe='')}"
        try:
            result = await self._http.get(url, headers=_auth_headers(auth))
        except HttpStatusError as exc:
            if exc.status_code == 404:
                raise SearchError(
                    SearchErrorKind.TRANSPORT, f"Bangumi subject {subject_id} not found"
                ) from exc
            raise _status_error(exc) from exc
        except MetadataFetchError as exc:
            raise SearchError(
                SearchErrorKind.TRANSPORT, f"Bangumi detail fetch failed: {exc}"
            ) from exc

        data = _decode(result)
        try:
            return parse_subject(data, subject_id=subject_id)
        except BangumiParseError as exc:
            raise SearchError(SearchErrorKind.PARSE, f"Unexpected subject response: {exc}") from exc


def _auth_headers(access_token: str | None) -> dict[str, str]:
    if not access_token:
        return {}
    return {"Authorization": f"Bearer {access_token}"}


def _status_error(exc: HttpStatusError) -> SearchError:
    if exc.status_code in _UNAUTHORIZED_STATUSES:
        return SearchError(SearchErrorKind.UNAUTHORIZED, f"Bangumi rejected the token ({exc.status_code})")
    return SearchError(SearchErrorKind.TRANSPORT, str(exc))


def _decode(result: HttpResult) -> object:
    try:
        return result.json()
    except MetadataFetchError as exc:
        raise SearchError(SearchErrorKind.TRANSPORT, str(exc)) from exc
