# ABOUTME: Unit tests for credential value types and the in-process token store.
# ABOUTME: Covers expiry checks, session kinds, secret masking, and persistence on replace.

from datetime import datetime, timedelta, timezone

from animeta.auth.credentials import Credentials, SessionCredential, SessionKind
from animeta.auth.token_store import CredentialPersistence, TokenStore
from tests.fakes import FIXED_NOW


class RecordingPersistence:
    def __init__(self) -> None:
        self.credentials: list[Credentials] = []
        self.sessions: list[SessionCredential] = []

    def save_credentials(self, credentials: Credentials) -> None:
        self.credentials.append(credentials)

    def save_session(self, session: SessionCredential) -> None:
        self.sessions.append(session)


class TestCredentials:
    """Tests for the Bangumi credential value."""

    def test_naive_expiry_is_utc(self) -> None:
        creds = Credentials(expires_at=datetime(2024, 3, 1, 12, 0))
        assert creds.expires_at.tzinfo is timezone.utc

    def test_access_valid_before_expiry(self) -> None:
        creds = Credentials(access_token="t", expires_at=FIXED_NOW + timedelta(seconds=1))
        assert creds.is_access_valid(FIXED_NOW)

    def test_access_invalid_at_expiry(self) -> None:
        creds = Credentials(access_token="t", expires_at=FIXED_NOW)
        assert not creds.is_access_valid(FIXED_NOW)

    def test_access_invalid_without_token(self) -> None:
        assert not Credentials(expires_at=FIXED_NOW + timedelta(days=1)).is_access_valid(FIXED_NOW)

    def test_has_client(self) -> None:
        assert Credentials(client_id="a", client_secret="b").has_client
        assert not Credentials(client_id="a").has_client

    def test_with_tokens_returns_new_value(self) -> None:
        creds = Credentials(client_id="a", client_secret="b", access_token="old")
        updated = creds.with_tokens("new", "refresh", FIXED_NOW)
        assert updated.access_token == "new"
        assert updated.client_id == "a"
        assert creds.access_token == "old"

    def test_repr_masks_secrets(self) -> None:
        text = repr(
            Credentials(
                client_id="app",
                client_secret="s3cret",
                access_token="AT-9f2c",
                refresh_token="RT-77aa",
            )
        )
        assert "app" in text
        assert "s3cret" not in text
        assert "AT-9f2c" not in text
        assert "RT-77aa" not in text


class TestSessionCredential:
    """Tests for the Hanime session value."""

    def test_cookie_takes_precedence(self) -> None:
        session = SessionCredential(cookie="c=1", username="u", password="p")
        assert session.kind is SessionKind.COOKIE

    def test_password_kind(self) -> None:
        assert SessionCredential(username="u", password="p").kind is SessionKind.PASSWORD

    def test_username_alone_is_none(self) -> None:
        assert SessionCredential(username="u").kind is SessionKind.NONE

    def test_repr_masks_cookie_and_password(self) -> None:
        text = repr(SessionCredential(cookie="session=secret", username="u", password="pw"))
        assert "secret" not in text
        assert "pw" not in text


class TestTokenStore:
    """Tests for TokenStore replacement and persistence."""

    def test_defaults(self) -> None:
        store = TokenStore()
        assert store.credentials == Credentials()
        assert store.session.kind is SessionKind.NONE

    def test_replace_credentials_persists(self) -> None:
        persistence = RecordingPersistence()
        store = TokenStore(persistence=persistence)
        new = Credentials(client_id="a")

        store.replace_credentials(new)

        assert store.credentials is new
        assert persistence.credentials == [new]

    def test_replace_session_persists(self) -> None:
        persistence = RecordingPersistence()
        store = TokenStore(persistence=persistence)
        new = SessionCredential(cookie="c=1")

        store.replace_session(new)

        assert store.session is new
        assert persistence.sessions == [new]

    def test_persistence_protocol(self) -> None:
        assert isinstance(RecordingPersistence(), CredentialPersistence)
