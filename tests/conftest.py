"""
Shared pytest configuration.

Unit tests replace storage with fakes from ``tests.fixtures``; integration
tests run the SQLAlchemy repositories against a SQLite database through
aiosqlite (see ``tests/integration/conftest.py``).
"""

import pytest

from chronicle.main.config import Settings, reset_settings, set_settings
from chronicle.main.request_context import clear_request_context


@pytest.fixture
def test_settings():
    """Settings built explicitly, independent of the environment."""
    return Settings(
        postgres_user="chronicle",
        postgres_host="localhost",
        postgres_password="secret",
        postgres_port=5432,
        postgres_db="chronicle_test",
        audit_write_timeout_seconds=5.0,
        audit_max_page_size=500,
        default_retention_days=90,
        testing=True,
    )


@pytest.fixture
def override_settings(test_settings):
    set_settings(test_settings)
    yield test_settings
    reset_settings()


@pytest.fixture(autouse=True)
def _clean_request_context():
    yield
    clear_request_context()
