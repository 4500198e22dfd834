# ABOUTME: Function-based service interface over the resolution core.
# ABOUTME: Typed request structs, the composed AppContext, and one pass-through per host endpoint.

import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

import httpx

from animeta.auth.bangumi_oauth import BangumiTokenManager, TokenState, build_authorize_url
from animeta.auth.credentials import Credentials, SessionCredential, SessionKind
from animeta.auth.token_store import TokenStore
from animeta.core.orchestrator import MetadataOrchestrator, ResolutionSignal
from animeta.db.config_store import ConfigStore
from animeta.db.connection import open_config_db
from animeta.metadata.http import AnimetaHttpClient
from animeta.metadata.types import ResolutionResult, SearchQuery
from animeta.settings import ScrapeSettings
from animeta.sources.bangumi import BangumiClient
from animeta.sources.hanime import HanimeClient

logger = logging.getLogger(__name__)

CLIENT_ID_ENV = "BANGUMI_CLIENT_ID"
CLIENT_SECRET_ENV = "BANGUMI_CLIENT_SECRET"


def _require(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValueError(f"{field} must not be empty")
    return cleaned


# --- Request structs ---


@dataclass(frozen=True)
class AuthorizeRequest:
    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", _require(self.code, "code"))


@dataclass(frozen=True)
class LoginRequest:
    username: str
    password: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "username", _require(self.username, "username"))
        if not self.password:
            raise ValueError("password must not be empty")


@dataclass(frozen=True)
class CookieRequest:
    cookie: str

    def __post_init__(self) -> None:
        cookie = _require(self.cookie, "cookie")
        # Accept a header copied verbatim from browser dev tools.
        if cookie.lower().startswith("cookie:"):
            cookie = _require(cookie[len("cookie:"):], "cookie")
        object.__setattr__(self, "cookie", cookie)


@dataclass(frozen=True)
class ConfigUpdate:
    """Partial configuration update; None leaves a field unchanged."""

    client_id: str | None = None
    client_secret: str | None = None
    refresh_token: str | None = None
    token_expires_at: datetime | None = None
    hanime_username: str | None = None
    hanime_password: str | None = None
    hanime_cookie: str | None = None
    enable_bangumi: bool | None = None
    enable_hanime: bool | None = None
    search_timeout: float | None = None
    redirect_uri: str | None = None

    def __post_init__(self) -> None:
        if self.search_timeout is not None and self.search_timeout <= 0:
            raise ValueError("search_timeout must be positive")
        if self.enable_bangumi is False and self.enable_hanime is False:
            raise ValueError("at least one source must stay enabled")


@dataclass(frozen=True)
class ScrapeRequest:
    title: str = ""
    bangumi_id: str | None = None
    use_bangumi: bool = True
    use_hanime: bool = True
    timeout: float | None = None

    def __post_init__(self) -> None:
        if not (self.title or "").strip() and not self.bangumi_id:
            raise ValueError("title or bangumi_id is required")
        if not (self.use_bangumi or self.use_hanime):
            raise ValueError("at least one source must be used")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")


@dataclass(frozen=True)
class ConfigView:
    """Configuration as shown to a user; secrets are reported as present/absent."""

    client_id: str
    has_client_secret: bool
    has_refresh_token: bool
    token_expires_at: datetime | None
    token_state: TokenState
    hanime_login_method: SessionKind
    hanime_username: str
    settings: ScrapeSettings


# --- Composition ---


@dataclass
class AppContext:
    """Everything the boundary adapters need, built once per process."""

    config: ConfigStore
    tokens: TokenStore
    token_manager: BangumiTokenManager
    hanime: HanimeClient
    orchestrator: MetadataOrchestrator
    http: AnimetaHttpClient
    settings: ScrapeSettings

    async def aclose(self) -> None:
        await self.http.aclose()
        self.config.close()


def build_context(
    db_path: Path | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AppContext:
    """Open the config store and wire up the core with explicit dependencies."""
    config = ConfigStore(open_config_db(db_path))
    credentials, session = config.load()
    settings = config.load_settings()

    env_id = os.environ.get(CLIENT_ID_ENV, "")
    env_secret = os.environ.get(CLIENT_SECRET_ENV, "")
    if (env_id and not credentials.client_id) or (env_secret and not credentials.client_secret):
        credentials = replace(
            credentials,
            client_id=credentials.client_id or env_id,
            client_secret=credentials.client_secret or env_secret,
        )

    http = AnimetaHttpClient(timeout=settings.search_timeout, transport=transport)
    tokens = TokenStore(credentials, session, persistence=config)
    token_manager = BangumiTokenManager(
        http, tokens, redirect_uri=settings.redirect_uri or None
    )
    hanime = HanimeClient(http)
    orchestrator = MetadataOrchestrator(token_manager, BangumiClient(http), hanime, tokens)
    return AppContext(
        config=config,
        tokens=tokens,
        token_manager=token_manager,
        hanime=hanime,
        orchestrator=orchestrator,
        http=http,
        settings=settings,
    )


# --- Endpoints ---


def authorize_url(ctx: AppContext) -> str:
    """URL to visit in a browser to obtain an authorization code."""
    client_id = _require(ctx.tokens.credentials.client_id, "client_id")
    return build_authorize_url(client_id, ctx.settings.redirect_uri or None)


async def authenticate_with_code(ctx: AppContext, request: AuthorizeRequest) -> bool:
    """Exchange an authorization code; returns whether the new token probes live.

    Raises:
        AuthError: EXCHANGE_FAILED.
    """
    credentials = await ctx.token_manager.exchange_authorization_code(
        request.code, ctx.tokens.credentials
    )
    return await ctx.token_manager.validate(credentials)


async def authenticate_with_credentials(
    ctx: AppContext, request: LoginRequest
) -> SessionCredential:
    """Sign in to Hanime and store the resulting cookie session.

    Raises:
        ScrapeError: UNAUTHENTICATED or TRANSPORT.
    """
    session = await ctx.hanime.login(request.username, request.password)
    ctx.tokens.replace_session(session)
    return session


async def authenticate_with_cookie(ctx: AppContext, request: CookieRequest) -> bool:
    """Store a browser cookie for Hanime; returns whether it probes signed in."""
    session = ctx.tokens.session.with_cookie(request.cookie)
    ctx.tokens.replace_session(session)
    return await ctx.hanime.validate(session)


def get_configuration(ctx: AppContext) -> ConfigView:
    credentials = ctx.tokens.credentials
    session = ctx.tokens.session
    return ConfigView(
        client_id=credentials.client_id,
        has_client_secret=bool(credentials.client_secret),
        has_refresh_token=bool(credentials.refresh_token),
        token_expires_at=credentials.expires_at,
        token_state=ctx.token_manager.state(credentials),
        hanime_login_method=session.kind,
        hanime_username=session.username,
        settings=ctx.settings,
    )


def update_configuration(ctx: AppContext, update: ConfigUpdate) -> ConfigView:
    """Apply a partial update and persist whatever changed.

    The whole update is validated before anything is written, so a rejected
    update leaves the stored configuration untouched.
    """
    settings = ctx.settings
    new_settings = ScrapeSettings(
        enable_bangumi=_pick(update.enable_bangumi, settings.enable_bangumi),
        enable_hanime=_pick(update.enable_hanime, settings.enable_hanime),
        search_timeout=_pick(update.search_timeout, settings.search_timeout),
        redirect_uri=_pick(update.redirect_uri, settings.redirect_uri),
    )
    if not (new_settings.enable_bangumi or new_settings.enable_hanime):
        raise ValueError("at least one source must stay enabled")

    credentials = ctx.tokens.credentials
    new_credentials = Credentials(
        client_id=_pick(update.client_id, credentials.client_id),
        client_secret=_pick(update.client_secret, credentials.client_secret),
        access_token=credentials.access_token,
        refresh_token=_pick(update.refresh_token, credentials.refresh_token),
        expires_at=(
            update.token_expires_at if update.token_expires_at is not None else credentials.expires_at
        ),
    )
    session = ctx.tokens.session
    new_session = SessionCredential(
        cookie=_pick(update.hanime_cookie, session.cookie),
        username=_pick(update.hanime_username, session.username),
        password=_pick(update.hanime_password, session.password),
    )

    if new_credentials != credentials:
        ctx.tokens.replace_credentials(new_credentials)
    if new_session != session:
        ctx.tokens.replace_session(new_session)
    if new_settings != settings:
        ctx.config.save_settings(new_settings)
        ctx.settings = new_settings
        ctx.token_manager.redirect_uri = new_settings.redirect_uri or None

    return get_configuration(ctx)


async def trigger_scrape(ctx: AppContext, request: ScrapeRequest) -> ResolutionResult:
    """Resolve one title with the configured sources.

    Raises:
        ResolutionError: No enabled source produced a record.
        ValueError: Every requested source is disabled in the settings.
    """
    use_bangumi = request.use_bangumi and ctx.settings.enable_bangumi
    use_hanime = request.use_hanime and ctx.settings.enable_hanime
    if not (use_bangumi or use_hanime):
        raise ValueError("every requested source is disabled in the settings")

    query = SearchQuery(title=request.title, bangumi_id=request.bangumi_id)
    signal = ResolutionSignal(timeout=request.timeout or ctx.settings.search_timeout)
    return await ctx.orchestrator.resolve(
        query, signal=signal, use_bangumi=use_bangumi, use_hanime=use_hanime
    )


def _pick(new, current):
    return current if new is None else new
