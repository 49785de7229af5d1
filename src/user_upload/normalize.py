"""Normalization functions for user CSV ingestion.

Normalization never rejects a value; validation happens afterwards in
user_upload.validate.
"""

from __future__ import annotations

from typing import Sequence

from user_upload.shared import UserRecord


# ---------------------------------------------------------------------------
# Rule 1: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str:
    """Strip leading/trailing whitespace; treat None as empty string."""
    if value is None:
        return ""
    return value.strip()


# ---------------------------------------------------------------------------
# Rule 2: normalize_person_name
# ---------------------------------------------------------------------------

def normalize_person_name(value: str | None) -> str:
    """Lowercase the whole value, then uppercase only its first character.

    "DOE" -> "Doe", "O'Brien" -> "O'brien", "McDonald" -> "Mcdonald".
    Interior capitals are not preserved.  A first character whose uppercase
    form is several characters keeps only the first of them ("ßmith" ->
    "Smith"), so the result always has exactly one leading capital.
    """
    v = trim(value).lower()
    return v[:1].upper()[:1] + v[1:]


# ---------------------------------------------------------------------------
# Rule 3: normalize_email
# ---------------------------------------------------------------------------

def normalize_email(value: str | None) -> str:
    """Lowercase and trim an email address."""
    return trim(value).lower()


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------

def normalize_row(fields: Sequence[str]) -> UserRecord:
    """Return a UserRecord built from a (name, surname, email) row.

    The caller guarantees exactly three fields.
    """
    name, surname, email = fields
    return UserRecord(
        name=normalize_person_name(name),
        surname=normalize_person_name(surname),
        email=normalize_email(email),
    )
