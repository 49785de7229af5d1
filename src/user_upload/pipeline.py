"""user_upload.pipeline

Reads a users CSV one row at a time and drives each row through:

  0. csv parse              → "Unparseable row: <csv error>"
  1. column count check     → "Invalid number of columns"
  2. normalize_row
  3. name/surname presence  → "Missing name or surname"
  4. is_valid_email         → "Invalid email address: <email>"
  5. insert_user            → Inserted | Simulated | DatabaseError

Every rejection is row-scoped: it is echoed, counted and written to the
rejects file, and the next row is processed.  Run-scoped failures
(missing file, credentials, connection, table creation) raise an
UploadError out of run_upload.  Missing credentials are reported before
the input is read whenever the run will need a connection.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator, TextIO

import click
import psycopg

from user_upload.db import (
    ConnectionHandle,
    DbSettings,
    insert_user,
    provision_users_table,
)
from user_upload.normalize import normalize_row
from user_upload.shared import (
    ConfigError,
    DatabaseError,
    ImportOutcome,
    InputError,
    Inserted,
    NullRejectWriter,
    Provisioned,
    RejectWriter,
    RunCounters,
    Simulated,
    write_run_report,
)
from user_upload.validate import is_valid_email

EXPECTED_COLUMNS = 3


@dataclass(frozen=True)
class UploadConfig:
    csv_path: Path | None = None
    create_table: bool = False
    dry_run: bool = False
    db: DbSettings = field(default_factory=DbSettings)
    rejects_path: Path | None = None
    reports_dir: Path | None = None
    run_id: str = "local"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

def read_rows(fh: TextIO) -> Iterator[tuple[int, list[str] | csv.Error]]:
    """Yield (row_number, fields) for each data row; the header is skipped.

    A line the csv reader cannot parse (e.g. a field over the size limit)
    is yielded as (row_number, csv.Error) and reading carries on with the
    next line.
    """
    reader = csv.reader(fh, delimiter=",", quotechar='"', escapechar="\\")
    try:
        next(reader, None)
    except csv.Error:
        pass
    row_number = 0
    while True:
        row_number += 1
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            yield row_number, exc
            continue
        yield row_number, fields


# ---------------------------------------------------------------------------
# Per-row processing
# ---------------------------------------------------------------------------

def _reject(
    row_number: int,
    fields: list[str],
    reason: str,
    counters: RunCounters,
    rejects: RejectWriter | NullRejectWriter,
    echo: Callable[[str], None],
) -> None:
    message = f"Error on row {row_number}: {reason}"
    counters.rows_rejected += 1
    counters.messages.append(message)
    rejects.write(row_number, fields, reason)
    echo(message)


def _process_row(
    handle: ConnectionHandle,
    row_number: int,
    fields: list[str] | csv.Error,
    dry_run: bool,
    counters: RunCounters,
    rejects: RejectWriter | NullRejectWriter,
    echo: Callable[[str], None],
) -> None:
    if isinstance(fields, csv.Error):
        _reject(row_number, [], f"Unparseable row: {fields}", counters, rejects, echo)
        return

    if len(fields) != EXPECTED_COLUMNS:
        _reject(row_number, fields, "Invalid number of columns", counters, rejects, echo)
        return

    record = normalize_row(fields)

    if not record.name or not record.surname:
        _reject(row_number, fields, "Missing name or surname", counters, rejects, echo)
        return

    if not is_valid_email(record.email):
        _reject(
            row_number, fields, f"Invalid email address: {record.email}",
            counters, rejects, echo,
        )
        return

    result = insert_user(handle, record, dry_run)
    summary = f"{record.name} {record.surname} ({record.email})"

    if isinstance(result, Inserted):
        message = f"Inserted row {row_number}: {summary}"
        counters.rows_inserted += 1
    elif isinstance(result, Simulated):
        message = f"Dry run: would insert row {row_number}: {summary}"
        counters.rows_would_insert += 1
    else:
        counters.db_phase_errors += 1
        _reject(row_number, fields, str(result), counters, rejects, echo)
        return

    counters.messages.append(message)
    echo(message)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def run(
    rows: Iterable[tuple[int, list[str] | csv.Error]],
    dry_run: bool,
    handle: ConnectionHandle,
    rejects: RejectWriter | NullRejectWriter | None = None,
    echo: Callable[[str], None] = click.echo,
) -> ImportOutcome:
    """Process rows in order and return the finalized ImportOutcome."""
    counters = RunCounters()
    rejects = rejects or NullRejectWriter()

    for row_number, fields in rows:
        counters.rows_read += 1
        _process_row(handle, row_number, fields, dry_run, counters, rejects, echo)

    echo(f"Processed {counters.rows_read} rows")
    if counters.rows_rejected:
        echo(f"Encountered {counters.rows_rejected} errors")
    return counters.finalize(dry_run)


def provision_only(handle: ConnectionHandle) -> Provisioned | DatabaseError:
    return provision_users_table(handle)


def run_upload(
    config: UploadConfig,
    connect: Callable[..., psycopg.Connection] = psycopg.connect,
    echo: Callable[[str], None] = click.echo,
) -> ImportOutcome | Provisioned:
    """Run one upload as described by config.

    With create_table set only the table is provisioned and the input file,
    if any, is not read.  Raises UploadError on run-scoped failures.
    """
    if not config.create_table and config.csv_path is None:
        raise ConfigError("no input file given (use --file or --create_table)")
    if config.create_table or not config.dry_run:
        config.db.conninfo()

    handle = ConnectionHandle(config.db, connect=connect)
    try:
        if config.create_table:
            result = provision_only(handle)
            if isinstance(result, DatabaseError):
                raise result
            echo(f"Table '{result.table}' is ready")
            return result

        started_at = datetime.now(timezone.utc).isoformat()
        rejects = RejectWriter(config.rejects_path) if config.rejects_path else NullRejectWriter()
        try:
            try:
                fh = config.csv_path.open(encoding="utf-8-sig", newline="")
            except OSError as exc:
                raise InputError(f"cannot open {config.csv_path}: {exc.strerror or exc}") from exc
            with fh:
                try:
                    outcome = run(read_rows(fh), config.dry_run, handle, rejects, echo)
                except UnicodeDecodeError as exc:
                    raise InputError(f"cannot read {config.csv_path}: {exc}") from exc
        finally:
            rejects.close()

        if config.reports_dir is not None:
            report_path = write_run_report(
                config.reports_dir, config.run_id, started_at,
                "dry_run" if config.dry_run else "import",
                str(config.csv_path), outcome,
            )
            echo(f"[{config.run_id}] Run report: {report_path}")
        return outcome
    finally:
        handle.close()
