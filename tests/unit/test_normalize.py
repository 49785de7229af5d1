"""Unit tests for user_upload.normalize."""

import pytest

from user_upload.normalize import (
    normalize_email,
    normalize_person_name,
    normalize_row,
    trim,
)
from user_upload.shared import UserRecord


# ---------------------------------------------------------------------------
# trim
# ---------------------------------------------------------------------------

class TestTrim:
    def test_strips_whitespace(self):
        assert trim("  hello  ") == "hello"

    def test_strips_tabs_and_newlines(self):
        assert trim("\thello\n") == "hello"

    def test_none_returns_empty(self):
        assert trim(None) == ""

    def test_whitespace_only_returns_empty(self):
        assert trim("   ") == ""


# ---------------------------------------------------------------------------
# normalize_person_name
# ---------------------------------------------------------------------------

class TestNormalizePersonName:
    def test_lowercase_input(self):
        assert normalize_person_name("john") == "John"

    def test_uppercase_input(self):
        assert normalize_person_name("DOE") == "Doe"

    def test_trims_before_capitalizing(self):
        assert normalize_person_name("  mARY ") == "Mary"

    def test_apostrophe_lowercases_rest(self):
        assert normalize_person_name("O'Brien") == "O'brien"

    def test_interior_capitals_not_kept(self):
        assert normalize_person_name("McDonald") == "Mcdonald"

    def test_empty(self):
        assert normalize_person_name("") == ""

    def test_single_letter(self):
        assert normalize_person_name("j") == "J"

    def test_non_ascii(self):
        assert normalize_person_name("ÉLODIE") == "Élodie"

    def test_multi_char_uppercase_keeps_one_capital(self):
        # "ß".upper() is "SS"; only one leading capital is kept.
        assert normalize_person_name("ßmith") == "Smith"
        assert normalize_person_name("ßMITH") == "Smith"


# ---------------------------------------------------------------------------
# normalize_email
# ---------------------------------------------------------------------------

class TestNormalizeEmail:
    def test_lowercases(self):
        assert normalize_email("User@Example.COM") == "user@example.com"

    def test_trims(self):
        assert normalize_email("  user@example.com  ") == "user@example.com"

    def test_none(self):
        assert normalize_email(None) == ""


# ---------------------------------------------------------------------------
# normalize_row
# ---------------------------------------------------------------------------

class TestNormalizeRow:
    def test_mixed_case_row(self):
        record = normalize_row(["john", "DOE", "JOHN.DOE@EXAMPLE.com"])
        assert record == UserRecord(
            name="John", surname="Doe", email="john.doe@example.com"
        )

    def test_whitespace_around_every_field(self):
        record = normalize_row([" jane ", " smith", "Jane@Example.org "])
        assert record.name == "Jane"
        assert record.surname == "Smith"
        assert record.email == "jane@example.org"

    def test_does_not_validate_email(self):
        record = normalize_row(["jane", "smith", "NOT-AN-EMAIL"])
        assert record.email == "not-an-email"

    @pytest.mark.parametrize("fields", [["a", "b"], ["a", "b", "c", "d"]])
    def test_wrong_arity_raises(self, fields):
        with pytest.raises(ValueError):
            normalize_row(fields)
