# ABOUTME: Shared pytest fixtures for animeta tests.
# ABOUTME: Provides a temp config database path and a frozen clock.

from pathlib import Path

import pytest

from tests.fakes import FIXED_NOW


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a fresh config database inside the test's temp dir."""
    return tmp_path / "config.db"


@pytest.fixture
def clock():
    """A frozen clock for token expiry arithmetic."""
    return lambda: FIXED_NOW
