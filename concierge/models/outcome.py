"""Validator results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Reason(str, Enum):
    """Stable reason codes carried by an ``Invalid`` outcome."""

    NOT_TEXT = "not_text"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    INVALID_CHARACTERS = "invalid_characters"
    MUST_CONTAIN_LETTERS = "must_contain_letters"
    WRONG_LENGTH = "wrong_length"
    INVALID_AREA_CODE = "invalid_area_code"
    NEGATIVE_NUMBER = "negative_number"
    MISSING = "missing"


@dataclass(frozen=True)
class Valid:
    value: str

    @property
    def valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    reason: Reason

    @property
    def valid(self) -> bool:
        return False


ValidationOutcome = Union[Valid, Invalid]


@dataclass(frozen=True)
class RegionClassification:
    """Whether an address is inside the service region, and which rule said so."""

    matched: bool
    rule: Optional[str] = None

    def __bool__(self) -> bool:
        return self.matched
