# ABOUTME: Resolves one title against Bangumi and Hanime concurrently and merges the answers.
# ABOUTME: Owns candidate selection, the single refresh-and-retry, per-source bounds, and fallback.

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from animeta.auth.bangumi_oauth import BangumiTokenManager
from animeta.auth.credentials import Credentials, SessionCredential, SessionKind
from animeta.auth.token_store import TokenStore
from animeta.core.merge import merge_records
from animeta.errors import (
    AnimetaError,
    AuthError,
    ResolutionError,
    ScrapeError,
    SearchError,
    SearchErrorKind,
)
from animeta.metadata.types import (
    MetadataRecord,
    OutcomeStatus,
    ResolutionResult,
    SearchQuery,
    SourceOutcome,
)
from animeta.sources.bangumi import BangumiClient
from animeta.sources.hanime import HanimeClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ResolutionSignal:
    """Caller-supplied bound on a resolution.

    `timeout` applies to each source independently. Setting `cancel_event`
    aborts whatever is still in flight.
    """

    timeout: float | None = None
    cancel_event: asyncio.Event | None = None


class SourceCancelled(Exception):
    """Internal: a source was stopped by the resolution signal."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass
class _BangumiAttempt:
    credentials: Credentials
    refresh_attempted: bool = False

    @property
    def token(self) -> str | None:
        return self.credentials.access_token or None


class MetadataOrchestrator:
    """Fans a SearchQuery out to both sources and merges the results.

    Constructed once with its collaborators and passed to whatever needs it.
    The two source paths share no mutable state beyond the TokenStore, which
    is only ever swapped whole.
    """

    def __init__(
        self,
        token_manager: BangumiTokenManager,
        bangumi: BangumiClient,
        hanime: HanimeClient,
        store: TokenStore | None = None,
    ) -> None:
        self._tokens = token_manager
        self._bangumi = bangumi
        self._hanime = hanime
        self._store = store

    async def resolve(
        self,
        query: SearchQuery,
        credentials: Credentials | None = None,
        session: SessionCredential | None = None,
        *,
        signal: ResolutionSignal | None = None,
        use_bangumi: bool = True,
        use_hanime: bool = True,
    ) -> ResolutionResult:
        """Run one resolution.

        Credentials and session default to the TokenStore's current values.

        Raises:
            ValueError: Both sources disabled.
            ResolutionError: No enabled source produced a usable record. The
                error carries one outcome per enabled source.
        """
        if not (use_bangumi or use_hanime):
            raise ValueError("at least one source must be enabled")
        signal = signal or ResolutionSignal()
        if credentials is None:
            credentials = self._store.credentials if self._store else Credentials()
        if session is None:
            session = self._store.session if self._store else SessionCredential()

        jobs: list[Awaitable[tuple[MetadataRecord | None, SourceOutcome]]] = []
        if use_bangumi:
            jobs.append(
                self._run_source(
                    self._bangumi.name, lambda: self._resolve_bangumi(query, credentials), signal
                )
            )
        if use_hanime:
            jobs.append(
                self._run_source(
                    self._hanime.name, lambda: self._resolve_hanime(query, session), signal
                )
            )

        results = await asyncio.gather(*jobs)
        records = {outcome.source: record for record, outcome in results}
        outcomes = tuple(outcome for _, outcome in results)

        record = merge_records(records.get(self._bangumi.name), records.get(self._hanime.name))
        if record is None:
            logger.warning("Resolution failed for %r: %s", query.title, outcomes)
            raise ResolutionError(outcomes)
        return ResolutionResult(record=record, outcomes=outcomes)

    async def _resolve_bangumi(
        self, query: SearchQuery, credentials: Credentials
    ) -> MetadataRecord | None:
        attempt = _BangumiAttempt(credentials)
        # Nothing to renew without a refresh token.
        if credentials.refresh_token and self._tokens.needs_refresh(credentials):
            attempt.refresh_attempted = True
            try:
                attempt.credentials = await self._tokens.ensure_valid(credentials)
            except AuthError as exc:
                # Keep the old token and let the request fail on its own.
                logger.warning("Bangumi token refresh failed, using existing token: %s", exc)

        subject_id = query.bangumi_id
        if subject_id is None:
            candidates = await self._with_reauth(
                attempt, lambda token: self._bangumi.search(query, token)
            )
            if not candidates or candidates[0].source_id is None:
                return None
            best = candidates[0]
            logger.info("Bangumi matched %r to subject %s (%s)", query.title, best.source_id, best.name)
            subject_id = best.source_id

        return await self._with_reauth(
            attempt, lambda token: self._bangumi.fetch_detail(subject_id, token)
        )

    async def _with_reauth(
        self, attempt: _BangumiAttempt, call: Callable[[str | None], Awaitable[T]]
    ) -> T:
        """Run a Bangumi call; on UNAUTHORIZED refresh once and retry once."""
        try:
            return await call(attempt.token)
        except SearchError as exc:
            if exc.kind is not SearchErrorKind.UNAUTHORIZED or attempt.refresh_attempted:
                raise
            attempt.refresh_attempted = True
            logger.info("Bangumi answered unauthorized, forcing a token refresh")
            try:
                attempt.credentials = await self._tokens.refresh(attempt.credentials)
            except AuthError as auth_exc:
                logger.warning("Forced Bangumi refresh failed: %s", auth_exc)
                raise exc from auth_exc
        return await call(attempt.token)

    async def _resolve_hanime(
        self, query: SearchQuery, session: SessionCredential
    ) -> MetadataRecord | None:
        if not query.title:
            return None
        if session.kind is SessionKind.PASSWORD:
            try:
                session = await self._hanime.login(session.username, session.password)
            except ScrapeError as exc:
                logger.warning("Hanime login failed, searching without a session: %s", exc)
                session = SessionCredential()
            else:
                if self._store is not None:
                    self._store.replace_session(session)

        candidates = await self._hanime.search(query, session)
        if not candidates or candidates[0].url is None:
            return None
        logger.info("Hanime matched %r to %s", query.title, candidates[0].url)
        return await self._hanime.fetch_detail(candidates[0].url, session)

    async def _run_source(
        self,
        source: str,
        work: Callable[[], Awaitable[MetadataRecord | None]],
        signal: ResolutionSignal,
    ) -> tuple[MetadataRecord | None, SourceOutcome]:
        """Run one source path and fold every failure into a SourceOutcome."""
        try:
            record = await _bounded(work(), signal)
        except SourceCancelled as exc:
            logger.warning("%s lookup %s", source, exc)
            return None, SourceOutcome(source, OutcomeStatus.CANCELLED, exc.reason, str(exc))
        except (AuthError, SearchError, ScrapeError) as exc:
            logger.warning("%s lookup failed (%s): %s", source, exc.kind.value, exc)
            return None, SourceOutcome(source, OutcomeStatus.FAILED, exc.kind.value, str(exc))
        except AnimetaError as exc:
            logger.warning("%s lookup failed: %s", source, exc)
            return None, SourceOutcome(source, OutcomeStatus.FAILED, "error", str(exc))

        if record is None or record.is_empty:
            return None, SourceOutcome(source, OutcomeStatus.EMPTY, message="no match")
        return record, SourceOutcome(source, OutcomeStatus.OK)


async def _bounded(work: Awaitable[T], signal: ResolutionSignal) -> T:
    """Await `work` until it finishes, times out, or the signal is cancelled.

    The in-flight task is cancelled in the latter two cases (which aborts its
    HTTP request) and SourceCancelled is raised.
    """
    task = asyncio.ensure_future(work)
    waiters: set[asyncio.Future] = {task}
    cancel_waiter: asyncio.Future | None = None
    if signal.cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(signal.cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=signal.timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()

    await asyncio.gather(task, return_exceptions=True)
    if cancel_waiter is not None and cancel_waiter in done:
        raise SourceCancelled("cancelled", "cancelled by caller")
    raise SourceCancelled("timeout", f"timed out after {signal.timeout:g}s")
