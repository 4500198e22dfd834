# ABOUTME: SQLite connection management for the animeta configuration database.
# ABOUTME: Resolves the database path and creates the schema on first open.

import os
import sqlite3
from pathlib import Path

from animeta.db.schema import SCHEMA_V1

DEFAULT_DB_PATH = Path.home() / ".animeta" / "config.db"

DB_ENV_VAR = "ANIMETA_DB"


def default_db_path() -> Path:
    """The database path from $ANIMETA_DB, or ~/.animeta/config.db."""
    override = os.environ.get(DB_ENV_VAR)
    return Path(override).expanduser() if override else DEFAULT_DB_PATH


def schema_version(conn: sqlite3.Connection) -> int:
    """The applied schema version, or 0 for a database with no schema yet."""
    table = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name='schema_version'"
    ).fetchone()
    if table is None:
        return 0
    return conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0] or 0


def open_config_db(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the animeta configuration database.

    Parent directories are created as needed and the schema is applied to a
    fresh file. Uses WAL journaling and sqlite3.Row for column access.
    """
    db_path = path or default_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")

    if schema_version(conn) == 0:
        conn.executescript(SCHEMA_V1)
    return conn
