"""user_upload.import_users_csv

CLI entrypoint for loading a users CSV (name,surname,email) into the
PostgreSQL `users` table.

Usage:
    python -m user_upload.import_users_csv -u postgres -h localhost --create_table
    python -m user_upload.import_users_csv -u postgres -h localhost --file users.csv
    python -m user_upload.import_users_csv --file users.csv --dry_run

Credentials fall back to PGUSER / PGPASSWORD / PGHOST / PGPORT / PGDATABASE.
A dry run never connects, so it needs no credentials.
"""

from __future__ import annotations

import logging
import sys
import uuid
from pathlib import Path

import click

from user_upload.db import DbSettings
from user_upload.pipeline import UploadConfig, run_upload
from user_upload.shared import UploadError


@click.command(context_settings={"help_option_names": ["--help"]})
@click.option("-u", "--user", envvar="PGUSER", default=None, help="PostgreSQL username")
@click.option("-p", "--password", envvar="PGPASSWORD", default=None, help="PostgreSQL password")
@click.option("-h", "--host", envvar="PGHOST", default=None, help="PostgreSQL hostname")
@click.option("--port", envvar="PGPORT", default=None, type=int, help="PostgreSQL port")
@click.option("--dbname", envvar="PGDATABASE", default=None, help="PostgreSQL database name")
@click.option(
    "--file", "csv_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="CSV file to be processed that includes user data",
)
@click.option(
    "--create_table", "--create-table", "create_table",
    is_flag=True, default=False,
    help="Create the users table and exit; no file is read",
)
@click.option(
    "--dry_run", "--dry-run", "dry_run",
    is_flag=True, default=False,
    help="Parse and validate the CSV file but do not insert into the database",
)
@click.option(
    "--rejects-path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write rejected rows to this CSV",
)
@click.option(
    "--reports-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Write a JSON run report into this directory",
)
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
def main(
    user: str | None,
    password: str | None,
    host: str | None,
    port: int | None,
    dbname: str | None,
    csv_path: Path | None,
    create_table: bool,
    dry_run: bool,
    rejects_path: Path | None,
    reports_dir: Path | None,
    run_id: str | None,
    verbose: bool,
) -> None:
    """Validate a users CSV and load it into PostgreSQL."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_id = run_id or str(uuid.uuid4())
    config = UploadConfig(
        csv_path=csv_path,
        create_table=create_table,
        dry_run=dry_run,
        db=DbSettings(host=host, user=user, password=password, dbname=dbname, port=port),
        rejects_path=rejects_path,
        reports_dir=reports_dir,
        run_id=run_id,
    )

    mode = "create_table" if create_table else ("dry_run" if dry_run else "import")
    click.echo(f"[{run_id}] Starting {mode} run")

    try:
        run_upload(config)
    except UploadError as exc:
        click.echo(f"[{run_id}] FATAL: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
