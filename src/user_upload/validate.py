"""Email address validation.

An address is accepted only when it passes both gates:

  1. matches_email_pattern: a restrictive local-part@domain pattern
     (letters, digits, '.', '_' and '-' in the local part, no '..',
     final domain label of at least two letters).
  2. is_well_formed_address: the email-validator library's general
     address syntax check, run without DNS lookups or deliverability
     policy (special-use domains such as .local or .test are accepted).

The pattern alone accepts things like '.john@example.com'; the syntax
check alone accepts RFC-legal characters such as '+' or '!' in the local
part.  The intersection is the accepted set.
"""

from __future__ import annotations

import re

from email_validator import EmailNotValidError, validate_email

_EMAIL_PATTERN_RE = re.compile(
    r"(?!.*\.\.)[a-z0-9._-]+@[a-z0-9.-]+\.[a-z]{2,}",
    re.IGNORECASE,
)


def matches_email_pattern(email: str) -> bool:
    return _EMAIL_PATTERN_RE.fullmatch(email) is not None


def is_well_formed_address(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return True


def is_valid_email(email: str | None) -> bool:
    """Return True if email passes both the pattern and the syntax check."""
    if not email:
        return False
    return matches_email_pattern(email) and is_well_formed_address(email)
