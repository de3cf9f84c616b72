"""Models for booking requests, notifications and dispatch results."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from .outcome import Reason, RegionClassification


class BookingRequest(BaseModel):
    """Fields supplied by the caller for one cleaning request.

    Values are left untyped on purpose: a number or object sent as ``phone``
    must reach the validators, which reject it, rather than fail parsing.
    """

    name: Any = None
    phone: Any = None
    address: Any = None

    def missing_fields(self) -> list[str]:
        """Names of fields that are absent, null or empty."""
        return [
            key
            for key in ("name", "phone", "address")
            if getattr(self, key) in (None, "")
        ]


@dataclass
class Notification:
    """One outbound message handed to a Notifier."""

    from_email: str
    to: list[str]
    subject: str
    text: str
    html: str = ""


class DispatchState(str, Enum):
    RECEIVED = "received"
    RATE_CHECKED = "rate_checked"
    SANITIZED = "sanitized"
    FIELD_VALIDATED = "field_validated"
    CLASSIFIED = "classified"
    NOTIFIED = "notified"
    REJECTED = "rejected"
    FAILED = "failed"


class FailureKind(str, Enum):
    ADMISSION_DENIED = "admission_denied"
    INVALID_INPUT = "invalid_input"
    NOTIFIER_UNAVAILABLE = "notifier_unavailable"
    INTERNAL_ERROR = "internal_error"


@dataclass
class DispatchResult:
    """Terminal outcome of one dispatched request."""

    state: DispatchState
    message: str
    failure: Optional[FailureKind] = None
    field: Optional[str] = None
    reason: Optional[Reason] = None
    classification: Optional[RegionClassification] = None
    message_id: Optional[str] = None
    trace: list[DispatchState] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True for outcomes that are not failures (notified or rejected)."""
        return self.state is not DispatchState.FAILED
