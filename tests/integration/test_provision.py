from __future__ import annotations

from user_upload.db import ConnectionHandle, provision_users_table
from user_upload.pipeline import UploadConfig, run_upload
from user_upload.shared import Provisioned


def _columns(conn):
    return conn.execute(
        """
        SELECT column_name, data_type, character_maximum_length, is_nullable
        FROM information_schema.columns
        WHERE table_name = 'users'
        ORDER BY ordinal_position
        """
    ).fetchall()


def test_provision_creates_users_table(db_settings, db_conn):
    handle = ConnectionHandle(db_settings)
    try:
        assert provision_users_table(handle) == Provisioned("users")
    finally:
        handle.close()

    assert _columns(db_conn) == [
        ("id", "integer", None, "NO"),
        ("name", "character varying", 100, "NO"),
        ("surname", "character varying", 100, "NO"),
        ("email", "character varying", 100, "NO"),
    ]
    unique = db_conn.execute(
        """
        SELECT count(*) FROM information_schema.table_constraints
        WHERE table_name = 'users' AND constraint_type = 'UNIQUE'
        """
    ).fetchone()[0]
    assert unique == 1


def test_provision_is_idempotent(db_settings, db_conn):
    handle = ConnectionHandle(db_settings)
    try:
        assert provision_users_table(handle) == Provisioned("users")
        before = _columns(db_conn)
        db_conn.execute(
            "INSERT INTO users (name, surname, email) VALUES ('Ann', 'Lee', 'ann@example.org')"
        )
        assert provision_users_table(handle) == Provisioned("users")
    finally:
        handle.close()

    assert _columns(db_conn) == before
    assert db_conn.execute("SELECT count(*) FROM users").fetchone()[0] == 1


def test_create_table_mode_ignores_file(db_settings, db_conn, tmp_path):
    config = UploadConfig(
        csv_path=tmp_path / "never-read.csv",
        create_table=True,
        db=db_settings,
    )
    assert run_upload(config, echo=lambda _: None) == Provisioned("users")
    assert db_conn.execute("SELECT count(*) FROM users").fetchone()[0] == 0
