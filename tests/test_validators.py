"""Tests for name, phone and email validation."""

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from concierge.models.outcome import Invalid, Reason, Valid
from concierge.validation.fields import validate_email, validate_name, validate_phone


# ── Name ───────────────────────────────────────────────────────────


class TestValidateName:
    @pytest.mark.parametrize("name", [
        "John Doe",
        "Mary-Jane Smith",
        "O'Connor",
        "D'Angelo",
        "Jo",
        "Jean-Claude Van Damme",
    ])
    def test_accepts_valid_names(self, name):
        assert validate_name(name) == Valid(name)

    def test_returns_trimmed_value(self):
        assert validate_name("  Ada Lovelace ") == Valid("Ada Lovelace")

    @pytest.mark.parametrize("name", ["", "J", "   "])
    def test_too_short(self, name):
        assert validate_name(name) == Invalid(Reason.TOO_SHORT)

    def test_length_boundaries(self):
        assert validate_name("a" * 100).valid
        assert validate_name("a" * 101) == Invalid(Reason.TOO_LONG)

    @pytest.mark.parametrize("name", [
        "John123",
        "Jane@Doe",
        "<script>alert</script>",
        "Robert; DROP TABLE",
        "123",
    ])
    def test_invalid_characters(self, name):
        assert validate_name(name) == Invalid(Reason.INVALID_CHARACTERS)

    @pytest.mark.parametrize("name", [
        "Bobby--Tables",
        "Robert DROP Table",
        "John delete",
        "Union Jack",
    ])
    def test_rejects_sql_fragments_within_allowed_characters(self, name):
        assert validate_name(name) == Invalid(Reason.INVALID_CHARACTERS)

    def test_sql_words_only_match_whole_words(self):
        assert validate_name("Dropkin").valid
        assert validate_name("Unionville Smith").valid

    @pytest.mark.parametrize("name", ["' -", "''", "- -"])
    def test_must_contain_letters(self, name):
        assert validate_name(name) == Invalid(Reason.MUST_CONTAIN_LETTERS)

    @pytest.mark.parametrize("value", [None, 123, ["John"], {"name": "John"}])
    def test_non_text(self, value):
        assert validate_name(value) == Invalid(Reason.NOT_TEXT)

    def test_custom_max_length(self):
        assert validate_name("Abcdef", max_length=5) == Invalid(Reason.TOO_LONG)


# ── Phone ──────────────────────────────────────────────────────────


class TestValidatePhone:
    @pytest.mark.parametrize("phone", [
        "4155551234",
        "415-555-1234",
        "(415) 555-1234",
        "415.555.1234",
        "+1 415 555 1234",
        "+14155551234",
        "+1 (415) 555-1234",
        "1-415-555-1234",
        "14155551234",
        "(415)555-1234",
        "415•555•1234",
        "415-555-1234 ext",
    ])
    def test_accepts_and_normalizes(self, phone):
        assert validate_phone(phone) == Valid("415-555-1234")

    def test_canonical_form_is_fixed_point(self):
        first = validate_phone("(415) 555 1234")
        assert validate_phone(first.value) == first

    @pytest.mark.parametrize("phone", [
        "123",
        "123456789",
        "415-555-1234 ext 123",
        "001-415-555-1234",
        "call me",
        "415-FLOWERS",
        "",
    ])
    def test_wrong_length(self, phone):
        assert validate_phone(phone) == Invalid(Reason.WRONG_LENGTH)

    @pytest.mark.parametrize("phone", ["0155551234", "1155551234", "011-555-1234", "111-555-1234"])
    def test_invalid_area_code(self, phone):
        assert validate_phone(phone) == Invalid(Reason.INVALID_AREA_CODE)

    def test_rejects_leading_minus(self):
        assert validate_phone("-4155551234") == Invalid(Reason.NEGATIVE_NUMBER)
        assert validate_phone("  -415-555-1234") == Invalid(Reason.NEGATIVE_NUMBER)

    def test_only_ascii_digits_count(self):
        # Arabic-Indic digits are not phone digits
        assert validate_phone("٤١٥٥٥٥١٢٣٤") == Invalid(Reason.WRONG_LENGTH)

    @pytest.mark.parametrize("value", [None, 4155551234, {}, ["4155551234"]])
    def test_non_text(self, value):
        assert validate_phone(value) == Invalid(Reason.NOT_TEXT)


# ── Email ──────────────────────────────────────────────────────────


class TestValidateEmail:
    @pytest.mark.parametrize("email", [
        "test@example.com",
        "user.name@domain.co.uk",
        "first+last@example.org",
        "test_email@sub.domain.com",
        "user@deep.sub.example.com",
        " padded@example.com ",
    ])
    def test_accepts_valid(self, email):
        assert validate_email(email) is True

    @pytest.mark.parametrize("email", [
        "notanemail",
        "@example.com",
        "test@",
        "test@.com",
        "test@example.com.",
        "test@domain..com",
        "test @example.com",
        "user@example .com",
        "user@example",
        "a@b@example.com",
        "",
    ])
    def test_rejects_invalid(self, email):
        assert validate_email(email) is False

    def test_local_part_length(self):
        assert validate_email("a" * 64 + "@example.com") is True
        assert validate_email("a" * 65 + "@example.com") is False

    def test_domain_length(self):
        assert validate_email("test@" + "a" * 251 + ".com") is True
        assert validate_email("test@" + "a" * 252 + ".com") is False

    @pytest.mark.parametrize("value", [None, 123, {}, ["a@b.com"]])
    def test_non_text(self, value):
        assert validate_email(value) is False
