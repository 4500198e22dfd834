# ABOUTME: Persistence for credentials, the Hanime session, and scrape settings.
# ABOUTME: Implements the config collaborator the token store saves through.

import sqlite3

from animeta.auth.credentials import Credentials, SessionCredential
from animeta.db.mapping import (
    credentials_to_row,
    pairs_to_settings,
    row_to_credentials,
    row_to_session,
    session_to_row,
    settings_to_pairs,
)
from animeta.settings import ScrapeSettings


class ConfigStore:
    """Wraps a sqlite3 connection and provides typed load/save for configuration."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def load(self) -> tuple[Credentials, SessionCredential]:
        """Load the persisted credentials and session, or empty defaults."""
        return self.load_credentials(), self.load_session()

    def load_credentials(self) -> Credentials:
        cursor = self._conn.execute("SELECT * FROM bangumi_credentials WHERE id = 1")
        row = cursor.fetchone()
        return row_to_credentials(row) if row else Credentials()

    def load_session(self) -> SessionCredential:
        cursor = self._conn.execute("SELECT * FROM hanime_session WHERE id = 1")
        row = cursor.fetchone()
        return row_to_session(row) if row else SessionCredential()

    def save_credentials(self, credentials: Credentials) -> None:
        """Replace the stored Bangumi credentials with `credentials`."""
        self._upsert("bangumi_credentials", credentials_to_row(credentials))

    def save_session(self, session: SessionCredential) -> None:
        """Replace the stored Hanime session with `session`."""
        self._upsert("hanime_session", session_to_row(session))

    def load_settings(self) -> ScrapeSettings:
        cursor = self._conn.execute("SELECT key, value FROM settings")
        return pairs_to_settings({row["key"]: row["value"] for row in cursor.fetchall()})

    def save_settings(self, settings: ScrapeSettings) -> None:
        self._conn.executemany(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            settings_to_pairs(settings),
        )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def _upsert(self, table: str, row: dict[str, object]) -> None:
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        self._conn.execute(
            f"INSERT OR REPLACE INTO {table} ({columns}, date_modified) "
            f"VALUES ({placeholders}, strftime('%Y-%m-%dT%H:%M:%S', 'now'))",
            list(row.values()),
        )
        self._conn.commit()
