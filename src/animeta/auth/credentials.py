# ABOUTME: Credential value types for both sources.
# ABOUTME: Credentials holds the Bangumi OAuth2 pair; SessionCredential holds the Hanime cookie or login.

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credentials:
    """Bangumi OAuth2 application and token state.

    Immutable: the token manager hands out a new value on every successful
    grant. `expires_at` is None when the expiry was never recorded.
    """

    client_id: str = ""
    client_secret: str = ""
    access_token: str = ""
    refresh_token: str = ""
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.expires_at is not None and self.expires_at.tzinfo is None:
            object.__setattr__(self, "expires_at", self.expires_at.replace(tzinfo=timezone.utc))

    @property
    def has_client(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def is_access_valid(self, now: datetime | None = None) -> bool:
        """True while the access token exists and `now < expires_at`."""
        if not self.access_token or self.expires_at is None:
            return False
        return (now or utcnow()) < self.expires_at

    def with_tokens(
        self, access_token: str, refresh_token: str, expires_at: datetime
    ) -> "Credentials":
        return replace(
            self,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    def __repr__(self) -> str:
        # Tokens and secrets stay out of logs and tracebacks.
        return (
            f"Credentials(client_id={self.client_id!r}, "
            f"access_token={'***' if self.access_token else ''!r}, "
            f"refresh_token={'***' if self.refresh_token else ''!r}, "
            f"expires_at={self.expires_at!r})"
        )


class SessionKind(str, Enum):
    COOKIE = "cookie"
    PASSWORD = "password"
    NONE = "none"


@dataclass(frozen=True)
class SessionCredential:
    """Hanime session: an opaque cookie string or a username/password pair.

    The cookie is authoritative when both are set. Validity is never tracked
    here; it is discovered when a request hits a login wall.
    """

    cookie: str = ""
    username: str = ""
    password: str = ""

    @property
    def kind(self) -> SessionKind:
        if self.cookie:
            return SessionKind.COOKIE
        if self.username and self.password:
            return SessionKind.PASSWORD
        return SessionKind.NONE

    def with_cookie(self, cookie: str) -> "SessionCredential":
        return replace(self, cookie=cookie)

    def __repr__(self) -> str:
        return (
            f"SessionCredential(kind={self.kind.value!r}, username={self.username!r})"
        )
