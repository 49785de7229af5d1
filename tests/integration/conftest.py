"""Integration test fixtures.

An ephemeral PostgreSQL database is provided by pytest-postgresql.  The
users table is not created here; tests provision it through the code
under test.
"""

from __future__ import annotations

import psycopg
import pytest
from pytest_postgresql import factories

from user_upload.db import DbSettings

# ---------------------------------------------------------------------------
# pytest-postgresql process fixture
# ---------------------------------------------------------------------------

postgresql_proc = factories.postgresql_proc()
postgresql = factories.postgresql("postgresql_proc")


@pytest.fixture(scope="function")
def db_settings(postgresql) -> DbSettings:
    """DbSettings pointing at a fresh, empty database for each test."""
    return DbSettings(
        host=postgresql.info.host,
        user=postgresql.info.user,
        password=postgresql.info.password or None,
        dbname=postgresql.info.dbname,
        port=postgresql.info.port,
    )


@pytest.fixture(scope="function")
def db_conn(db_settings):
    """Autocommit connection for inspecting what the pipeline wrote."""
    conn = psycopg.connect(db_settings.conninfo(), autocommit=True)
    try:
        yield conn
    finally:
        conn.close()
