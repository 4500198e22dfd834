# ABOUTME: Converts between credential/settings dataclasses and SQLite rows.
# ABOUTME: Handles ISO-8601 timestamps and the string encoding of settings values.

from datetime import datetime
from typing import Any

from animeta.auth.credentials import Credentials, SessionCredential
from animeta.settings import ScrapeSettings


def credentials_to_row(credentials: Credentials) -> dict[str, Any]:
    """Convert Credentials to a dict suitable for INSERT OR REPLACE."""
    return {
        "id": 1,
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
        "access_token": credentials.access_token,
        "refresh_token": credentials.refresh_token,
        "expires_at": credentials.expires_at.isoformat() if credentials.expires_at else None,
    }


def row_to_credentials(row: Any) -> Credentials:
    expires = row["expires_at"]
    return Credentials(
        client_id=row["client_id"],
        client_secret=row["client_secret"],
        access_token=row["access_token"],
        refresh_token=row["refresh_token"],
        expires_at=datetime.fromisoformat(expires) if expires else None,
    )


def session_to_row(session: SessionCredential) -> dict[str, Any]:
    return {
        "id": 1,
        "cookie": session.cookie,
        "username": session.username,
        "password": session.password,
    }


def row_to_session(row: Any) -> SessionCredential:
    return SessionCredential(
        cookie=row["cookie"],
        username=row["username"],
        password=row["password"],
    )


def settings_to_pairs(settings: ScrapeSettings) -> list[tuple[str, str]]:
    """Flatten settings to (key, value) string pairs for the settings table."""
    return [
        ("enable_bangumi", "1" if settings.enable_bangumi else "0"),
        ("enable_hanime", "1" if settings.enable_hanime else "0"),
        ("search_timeout", repr(float(settings.search_timeout))),
        ("redirect_uri", settings.redirect_uri),
    ]


def pairs_to_settings(pairs: dict[str, str]) -> ScrapeSettings:
    """Rebuild settings from stored pairs; missing keys keep their defaults."""
    defaults = ScrapeSettings()
    return ScrapeSettings(
        enable_bangumi=pairs.get("enable_bangumi", "1") == "1",
        enable_hanime=pairs.get("enable_hanime", "1") == "1",
        search_timeout=float(pairs.get("search_timeout", defaults.search_timeout)),
        redirect_uri=pairs.get("redirect_uri", defaults.redirect_uri),
    )
