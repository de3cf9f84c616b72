"""Data models for the booking pipeline."""

from .booking import (
    BookingRequest,
    DispatchResult,
    DispatchState,
    FailureKind,
    Notification,
)
from .outcome import Invalid, Reason, RegionClassification, Valid, ValidationOutcome

__all__ = [
    "BookingRequest",
    "DispatchResult",
    "DispatchState",
    "FailureKind",
    "Invalid",
    "Notification",
    "Reason",
    "RegionClassification",
    "Valid",
    "ValidationOutcome",
]
