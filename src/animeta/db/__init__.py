# ABOUTME: Public API for the animeta configuration database layer.
# ABOUTME: Exports connection management and the typed config store.

from animeta.db.config_store import ConfigStore
from animeta.db.connection import DEFAULT_DB_PATH, default_db_path, open_config_db

__all__ = [
    "DEFAULT_DB_PATH",
    "ConfigStore",
    "default_db_path",
    "open_config_db",
]
