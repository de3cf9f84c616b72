"""Validators for the name, phone and email fields.

Every validator accepts any value and has a defined result for non-string
input, so nothing the caller sends can raise here.
"""

from __future__ import annotations

import re
from typing import Any

from concierge.models.outcome import Invalid, Reason, Valid, ValidationOutcome

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

_NAME_CHARS = re.compile(r"[A-Za-z\s\-']+")
_NAME_LETTER = re.compile(r"[A-Za-z]")
_NAME_FORBIDDEN_SEQUENCES = ("--", "/*", "*/", ";")
_NAME_FORBIDDEN_WORDS = re.compile(r"\b(?:drop|delete|union)\b", re.IGNORECASE)

_NON_DIGITS = re.compile(r"[^0-9]")

EMAIL_LOCAL_MAX = 64
EMAIL_DOMAIN_MAX = 255


def validate_name(name: Any, max_length: int = NAME_MAX_LENGTH) -> ValidationOutcome:
    """Check a customer name; the valid value is the trimmed name."""
    if not isinstance(name, str):
        return Invalid(Reason.NOT_TEXT)

    cleaned = name.strip()

    if len(cleaned) < NAME_MIN_LENGTH:
        return Invalid(Reason.TOO_SHORT)
    if len(cleaned) > max_length:
        return Invalid(Reason.TOO_LONG)

    # Letters, spaces, hyphens and apostrophes only
    if not _NAME_CHARS.fullmatch(cleaned):
        return Invalid(Reason.INVALID_CHARACTERS)

    # SQL fragments that survive the character class
    if any(seq in cleaned for seq in _NAME_FORBIDDEN_SEQUENCES):
        return Invalid(Reason.INVALID_CHARACTERS)
    if _NAME_FORBIDDEN_WORDS.search(cleaned):
        return Invalid(Reason.INVALID_CHARACTERS)

    if not _NAME_LETTER.search(cleaned):
        return Invalid(Reason.MUST_CONTAIN_LETTERS)

    return Valid(cleaned)


def validate_phone(phone: Any) -> ValidationOutcome:
    """Normalize a US phone number to ``DDD-DDD-DDDD``.

    Any non-digit characters are ignored. An 11-digit number with a leading
    ``1`` is treated as carrying the country code.
    """
    if not isinstance(phone, str):
        return Invalid(Reason.NOT_TEXT)

    digits = _NON_DIGITS.sub("", phone)

    if len(digits) == 11 and digits[0] == "1":
        digits = digits[1:]

    if len(digits) != 10:
        return Invalid(Reason.WRONG_LENGTH)

    if digits[0] in ("0", "1"):
        return Invalid(Reason.INVALID_AREA_CODE)

    if phone.strip().startswith("-"):
        return Invalid(Reason.NEGATIVE_NUMBER)

    return Valid(f"{digits[:3]}-{digits[3:6]}-{digits[6:]}")


def validate_email(email: Any) -> bool:
    """Syntactic check for configured sender and recipient addresses."""
    if not isinstance(email, str):
        return False

    email = email.strip()
    if not email or any(ch.isspace() for ch in email):
        return False

    parts = email.split("@")
    if len(parts) != 2:
        return False
    local, domain = parts

    if not local or not domain:
        return False
    if len(local) > EMAIL_LOCAL_MAX or len(domain) > EMAIL_DOMAIN_MAX:
        return False
    if domain.startswith(".") or domain.endswith("."):
        return False
    if ".." in domain or "." not in domain:
        return False

    return True
