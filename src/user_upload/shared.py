"""user_upload.shared

Shared types used across the import pipeline: the validated UserRecord,
tagged per-step outcomes, run-scoped exceptions, RunCounters /
ImportOutcome accounting, RejectWriter and report-writing support.
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence


# ---------------------------------------------------------------------------
# Records and tagged outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserRecord:
    name: str
    surname: str
    email: str

    def as_params(self) -> dict[str, str]:
        return {"name": self.name, "surname": self.surname, "email": self.email}


@dataclass(frozen=True)
class Inserted:
    record: UserRecord


@dataclass(frozen=True)
class Simulated:
    """A dry-run insert: the record that would have been written."""

    record: UserRecord


@dataclass(frozen=True)
class Provisioned:
    table: str


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class UploadError(Exception):
    """Base class for run-scoped failures that stop an upload run."""


class ConfigError(UploadError):
    """Raised when required options or credentials are missing."""


class InputError(UploadError):
    """Raised when the input CSV cannot be opened or read."""


class DatabaseError(UploadError):
    """A backend failure wrapped with the operation that was being attempted.

    Raised for run-scoped failures (connecting); returned as a value by
    insert_user and provision_users_table so the caller decides the tier.
    """

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message


# ---------------------------------------------------------------------------
# RejectWriter
# ---------------------------------------------------------------------------

class RejectWriter:
    """Lazy-open CSV writer for rejected rows."""

    FIELDNAMES = ["row_number", "raw_fields", "_reject_reason"]

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh = None
        self._writer = None

    def write(self, row_number: int, fields: Sequence[str], reason: str) -> None:
        if self._fh is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._path, "w", newline="", encoding="utf-8")
            self._writer = csv.DictWriter(self._fh, fieldnames=self.FIELDNAMES)
            self._writer.writeheader()
        self._writer.writerow({
            "row_number": row_number,
            "raw_fields": json.dumps(list(fields)),
            "_reject_reason": reason,
        })
        self._fh.flush()

    def close(self) -> None:
        if self._fh:
            self._fh.close()


class NullRejectWriter:
    """Used when no --rejects-path is given."""

    def write(self, row_number: int, fields: Sequence[str], reason: str) -> None:
        pass

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# RunCounters / ImportOutcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImportOutcome:
    rows_seen: int
    rows_inserted: int
    rows_would_insert: int
    rows_rejected: int
    db_phase_errors: int
    dry_run: bool
    per_row_messages: tuple[str, ...] = ()

    @property
    def rows_inserted_or_would_insert(self) -> int:
        return self.rows_inserted + self.rows_would_insert

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_seen": self.rows_seen,
            "rows_inserted": self.rows_inserted,
            "rows_would_insert": self.rows_would_insert,
            "rows_rejected": self.rows_rejected,
            "db_phase_errors": self.db_phase_errors,
            "dry_run": self.dry_run,
            "per_row_messages": list(self.per_row_messages),
        }


@dataclass
class RunCounters:
    rows_read: int = 0
    rows_inserted: int = 0
    rows_would_insert: int = 0
    rows_rejected: int = 0
    db_phase_errors: int = 0
    messages: list[str] = field(default_factory=list)

    def finalize(self, dry_run: bool) -> ImportOutcome:
        return ImportOutcome(
            rows_seen=self.rows_read,
            rows_inserted=self.rows_inserted,
            rows_would_insert=self.rows_would_insert,
            rows_rejected=self.rows_rejected,
            db_phase_errors=self.db_phase_errors,
            dry_run=dry_run,
            per_row_messages=tuple(self.messages),
        )


# ---------------------------------------------------------------------------
# Report writer
# ---------------------------------------------------------------------------

def write_run_report(
    reports_dir: Path,
    run_id: str,
    started_at: str,
    mode: str,
    csv_path: str | None,
    outcome: ImportOutcome,
) -> Path:
    report = {
        "run_id": run_id,
        "mode": mode,
        "started_at": started_at,
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "dry_run": outcome.dry_run,
        "csv_path": csv_path,
        "counters": outcome.to_dict(),
    }
    report_path = reports_dir / f"{run_id}.json"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2, default=str))
    return report_path
