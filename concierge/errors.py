"""Error taxonomy for the booking pipeline.

Each error maps to exactly one caller-facing message in the dispatcher.
``OutOfRegion`` is a business outcome rather than a failure, but travels the
same way so every stage can stop the pipeline by raising.
"""

from __future__ import annotations

from concierge.models.outcome import Reason, RegionClassification


class ConciergeError(Exception):
    """Base class for pipeline errors."""


class AdmissionDenied(ConciergeError):
    """The rate limiter refused the request."""

    def __init__(self, identifier: object) -> None:
        super().__init__(f"rate limit exceeded for {identifier!r}")
        self.identifier = identifier


class InvalidInput(ConciergeError):
    """A field failed validation."""

    def __init__(self, field: str, reason: Reason) -> None:
        super().__init__(f"{field}: {reason.value}")
        self.field = field
        self.reason = reason


class OutOfRegion(ConciergeError):
    """The address is outside the service region."""

    def __init__(self, classification: RegionClassification) -> None:
        super().__init__("address outside service region")
        self.classification = classification


class NotifierError(ConciergeError):
    """Raised by a Notifier when the message could not be delivered."""


class NotifierUnavailable(ConciergeError):
    """The notifier failed or timed out; detail stays in the logs."""
