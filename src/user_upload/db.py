"""user_upload.db

Database access for the users table: settings, a lazily opened
connection handle, table provisioning and the per-row insert.

The connection is opened with autocommit=True.  Every statement is its
own unit of work, so a failed insert (e.g. a duplicate email) does not
affect the rows after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import psycopg
from psycopg.conninfo import make_conninfo

from user_upload.shared import (
    ConfigError,
    DatabaseError,
    Inserted,
    Provisioned,
    Simulated,
    UserRecord,
)

log = logging.getLogger(__name__)

USERS_TABLE = "users"

CREATE_USERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS users (
  id      SERIAL PRIMARY KEY,
  name    VARCHAR(100) NOT NULL,
  surname VARCHAR(100) NOT NULL,
  email   VARCHAR(100) NOT NULL UNIQUE
)
"""

INSERT_USER_SQL = """
INSERT INTO users (name, surname, email)
VALUES (%(name)s, %(surname)s, %(email)s)
"""


def backend_message(exc: psycopg.Error) -> str:
    """One-line text for a backend error; DETAIL/HINT lines go to the log only."""
    primary = exc.diag.message_primary
    if primary:
        return primary.strip()
    return " ".join(line.strip() for line in str(exc).splitlines() if line.strip())


# ---------------------------------------------------------------------------
# Settings / connection handle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DbSettings:
    host: str | None = None
    user: str | None = None
    password: str | None = None
    dbname: str | None = None
    port: int | None = None

    def conninfo(self) -> str:
        """Return a libpq connection string; raise ConfigError on missing credentials."""
        missing = [name for name in ("user", "host") if not getattr(self, name)]
        if missing:
            raise ConfigError(
                f"missing database credentials: {', '.join(missing)} "
                "(use -u/-h or PGUSER/PGHOST)"
            )
        return make_conninfo(
            host=self.host,
            user=self.user,
            password=self.password or None,
            dbname=self.dbname or None,
            port=self.port,
        )


class ConnectionHandle:
    """Opens one connection on first use and reuses it for the whole run."""

    def __init__(
        self,
        settings: DbSettings,
        connect: Callable[..., psycopg.Connection] = psycopg.connect,
    ) -> None:
        self._settings = settings
        self._connect = connect
        self._conn: psycopg.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def get(self) -> psycopg.Connection:
        if self._conn is None:
            conninfo = self._settings.conninfo()
            log.debug("Opening database connection to host=%s", self._settings.host)
            try:
                self._conn = self._connect(conninfo, autocommit=True)
            except psycopg.Error as exc:
                log.error("Database connection failed: %s", exc)
                raise DatabaseError("connect to database", backend_message(exc)) from exc
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


# ---------------------------------------------------------------------------
# Table provisioning
# ---------------------------------------------------------------------------

def provision_users_table(handle: ConnectionHandle) -> Provisioned | DatabaseError:
    """Create the users table if it does not exist.

    Re-running against an existing table is a no-op and still returns
    Provisioned; an existing table is never altered.
    """
    conn = handle.get()
    try:
        conn.execute(CREATE_USERS_TABLE_SQL)
    except psycopg.Error as exc:
        log.error("CREATE TABLE %s failed: %s", USERS_TABLE, exc)
        return DatabaseError(f"create table {USERS_TABLE}", backend_message(exc))
    return Provisioned(USERS_TABLE)


# ---------------------------------------------------------------------------
# Insert
# ---------------------------------------------------------------------------

def insert_user(
    handle: ConnectionHandle,
    record: UserRecord,
    dry_run: bool,
) -> Inserted | Simulated | DatabaseError:
    """Insert one record, or simulate it when dry_run is set.

    A dry run never touches the handle, so no connection is opened.
    Backend failures come back as a DatabaseError value scoped to this row.
    """
    if dry_run:
        return Simulated(record)

    conn = handle.get()
    try:
        conn.execute(INSERT_USER_SQL, record.as_params())
    except psycopg.Error as exc:
        log.warning("Insert failed for %s: %s", record.email, exc)
        return DatabaseError("insert user", backend_message(exc))
    return Inserted(record)
