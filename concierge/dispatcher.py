"""Request dispatcher: drives one booking request through the admission FSM.

Each request walks the same states::

    received → rate_checked → sanitized → field_validated → classified
                                                              ├→ notified
                                                              └→ rejected
    (any state) → failed

Stages raise the errors from ``concierge.errors``; ``dispatch()`` catches
them and maps each to exactly one caller-facing message. Nothing raised by
a stage, the notifier included, escapes ``dispatch()``.
"""

from __future__ import annotations

import asyncio
import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Hashable, Optional
from zoneinfo import ZoneInfo

from concierge.errors import (
    AdmissionDenied,
    InvalidInput,
    NotifierError,
    NotifierUnavailable,
    OutOfRegion,
)
from concierge.logging_setup import redact_pii
from concierge.models.booking import (
    BookingRequest,
    DispatchResult,
    DispatchState,
    FailureKind,
    Notification,
)
from concierge.models.outcome import Invalid, Reason, RegionClassification
from concierge.notifiers.base import Notifier
from concierge.ratelimit import RateLimiter
from concierge.validation.fields import validate_name, validate_phone
from concierge.validation.region import RegionMatcher
from concierge.validation.sanitizer import sanitize

log = logging.getLogger("concierge.dispatcher")

MSG_RATE_LIMITED = "Too many requests. Please try again later."
MSG_MISSING_FIELDS = "Missing required fields: name, phone, and address"
MSG_INVALID_NAME = "Invalid name provided"
MSG_INVALID_PHONE = "Invalid phone number. Please provide a 10-digit US phone number."
MSG_INVALID_ADDRESS = "Please provide a complete address."
MSG_OUT_OF_REGION = "Sorry, we only serve {region} currently. We're expanding - stay tuned!"
MSG_BOOKED = "Successfully booked the maid. Will get confirmation shortly."
MSG_NOTIFY_FAILED = "Failed to send booking request. Please try again."
MSG_INTERNAL_ERROR = "Service temporarily unavailable. Please try again."

_FIELD_MESSAGES = {
    "name": MSG_INVALID_NAME,
    "phone": MSG_INVALID_PHONE,
    "address": MSG_INVALID_ADDRESS,
}


def format_request_time(moment: datetime) -> str:
    """US locale style without zero padding, e.g. ``1/5/2026, 3:04:05 PM``."""
    hour = moment.hour % 12 or 12
    return f"{moment.month}/{moment.day}/{moment.year}, {hour}:{moment:%M:%S %p}"


@dataclass(frozen=True)
class _CleanFields:
    name: str
    phone: str
    address: str


class RequestDispatcher:
    """Turns a BookingRequest into exactly one caller-facing result.

    Typical use::

        dispatcher = RequestDispatcher(limiter, notifier, matcher,
                                       from_email="bookings@example.com",
                                       recipients=["partner@example.com"])
        result = await dispatcher.dispatch(BookingRequest(**args), client_ip)
        reply(result.message)
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        notifier: Notifier,
        region_matcher: RegionMatcher,
        from_email: str,
        recipients: list[str],
        *,
        region_name: str = "San Francisco",
        region_timezone: str = "America/Los_Angeles",
        subject: str = "Cleaning Request - SF",
        name_max_length: int = 100,
        address_max_length: int = 200,
        address_min_length: int = 10,
        notify_timeout: float = 10.0,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._notifier = notifier
        self._region_matcher = region_matcher
        self._from_email = from_email
        self._recipients = list(recipients)
        self._region_name = region_name
        self._tz = ZoneInfo(region_timezone)
        self._subject = subject
        self._name_max_length = name_max_length
        self._address_max_length = address_max_length
        self._address_min_length = address_min_length
        self._notify_timeout = notify_timeout

    @classmethod
    def from_settings(cls, settings: Any, notifier: Notifier) -> "RequestDispatcher":
        """Build a dispatcher and its rate limiter from a Settings object."""
        limiter = RateLimiter(
            limit=settings.rate_limit,
            window_seconds=settings.rate_limit_window_seconds,
            cleanup_probability=settings.rate_limit_cleanup_probability,
        )
        matcher = RegionMatcher(
            keywords=settings.region_keywords,
            postal_ranges=settings.region_postal_ranges,
            exclusions=settings.region_exclusions,
        )
        return cls(
            limiter,
            notifier,
            matcher,
            from_email=settings.from_email,
            recipients=settings.recipients,
            region_name=settings.region_name,
            region_timezone=settings.region_timezone,
            name_max_length=settings.name_max_length,
            address_max_length=settings.address_max_length,
            address_min_length=settings.address_min_length,
            notify_timeout=settings.notify_timeout_seconds,
        )

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    # ── Public API ────────────────────────────────────────────

    async def dispatch(
        self, request: BookingRequest, client_id: Optional[Hashable] = None
    ) -> DispatchResult:
        """Run ``request`` through the pipeline and return its terminal result."""
        trace = [DispatchState.RECEIVED]
        classification: Optional[RegionClassification] = None

        try:
            self._check_rate(client_id)
            trace.append(DispatchState.RATE_CHECKED)

            self._check_present(request)
            name, address = self._sanitize(request)
            trace.append(DispatchState.SANITIZED)

            fields = self._validate(name, request.phone, address)
            trace.append(DispatchState.FIELD_VALIDATED)

            classification = self._classify(fields.address)
            trace.append(DispatchState.CLASSIFIED)
            if not classification.matched:
                raise OutOfRegion(classification)

            message_id = await self._notify(fields)
        except AdmissionDenied:
            log.warning("Request from %s denied by rate limiter", client_id)
            return self._failed(trace, MSG_RATE_LIMITED, FailureKind.ADMISSION_DENIED)
        except InvalidInput as e:
            log.info("Invalid %s from %s: %s", e.field, client_id, e.reason.value)
            message = MSG_MISSING_FIELDS if e.reason is Reason.MISSING else _FIELD_MESSAGES[e.field]
            return self._failed(
                trace, message, FailureKind.INVALID_INPUT, field=e.field, reason=e.reason
            )
        except OutOfRegion as e:
            log.info("Out-of-region address from %s", client_id)
            trace.append(DispatchState.REJECTED)
            return DispatchResult(
                state=DispatchState.REJECTED,
                message=MSG_OUT_OF_REGION.format(region=self._region_name),
                classification=e.classification,
                trace=trace,
            )
        except NotifierUnavailable:
            return self._failed(
                trace,
                MSG_NOTIFY_FAILED,
                FailureKind.NOTIFIER_UNAVAILABLE,
                classification=classification,
            )
        except Exception:
            log.exception("Unexpected error while dispatching request from %s", client_id)
            return self._failed(
                trace,
                MSG_INTERNAL_ERROR,
                FailureKind.INTERNAL_ERROR,
                classification=classification,
            )

        trace.append(DispatchState.NOTIFIED)
        log.info("Booking forwarded for %s (message_id=%s)", client_id, message_id or "?")
        return DispatchResult(
            state=DispatchState.NOTIFIED,
            message=MSG_BOOKED,
            classification=classification,
            message_id=message_id,
            trace=trace,
        )

    # ── Stages ────────────────────────────────────────────────

    def _check_rate(self, client_id: Optional[Hashable]) -> None:
        if not self._rate_limiter.admit(client_id):
            raise AdmissionDenied(client_id)

    @staticmethod
    def _check_present(request: BookingRequest) -> None:
        missing = request.missing_fields()
        if missing:
            raise InvalidInput(missing[0], Reason.MISSING)

    def _sanitize(self, request: BookingRequest) -> tuple[Any, Any]:
        """Sanitize name and address; non-text values pass through for the validators."""
        name = request.name
        if isinstance(name, str):
            name = sanitize(name, self._name_max_length)
        address = request.address
        if isinstance(address, str):
            address = sanitize(address, self._address_max_length)
        return name, address

    def _validate(self, name: Any, phone: Any, address: Any) -> _CleanFields:
        """Run name, phone and address checks in that order; first failure wins."""
        name_outcome = validate_name(name, self._name_max_length)
        if isinstance(name_outcome, Invalid):
            raise InvalidInput("name", name_outcome.reason)

        phone_outcome = validate_phone(phone)
        if isinstance(phone_outcome, Invalid):
            raise InvalidInput("phone", phone_outcome.reason)

        if not isinstance(address, str):
            raise InvalidInput("address", Reason.NOT_TEXT)
        if len(address) < self._address_min_length:
            raise InvalidInput("address", Reason.TOO_SHORT)

        return _CleanFields(name=name_outcome.value, phone=phone_outcome.value, address=address)

    def _classify(self, address: str) -> RegionClassification:
        classification = self._region_matcher.classify(address)
        log.debug("Address region rule: %r", classification.rule)
        return classification

    async def _notify(self, fields: _CleanFields) -> str:
        notification = self._build_notification(fields)
        log.info(
            "Sending booking notification: name=%s phone=%s address=%s",
            fields.name, redact_pii(fields.phone), redact_pii(fields.address),
        )
        try:
            return await asyncio.wait_for(
                self._notifier.send(notification), timeout=self._notify_timeout
            )
        except asyncio.TimeoutError:
            log.error("Notifier timed out after %.1fs", self._notify_timeout)
            raise NotifierUnavailable("timeout") from None
        except NotifierError as e:
            log.error("Notifier failed: %s", e)
            raise NotifierUnavailable(str(e)) from e
        except Exception as e:
            log.exception("Notifier raised unexpectedly")
            raise NotifierUnavailable(str(e)) from e

    # ── Helpers ───────────────────────────────────────────────

    def _build_notification(self, fields: _CleanFields) -> Notification:
        requested_at = format_request_time(datetime.now(self._tz))
        text = (
            "New cleaning service request:\n"
            "\n"
            "Customer Details:\n"
            f"- Name: {fields.name}\n"
            f"- Phone: {fields.phone}\n"
            f"- Address: {fields.address}\n"
            "\n"
            f"Request Time: {requested_at}\n"
            "\n"
            "Please contact the customer within 1 hour."
        )
        html_body = f"""
<h2>New Cleaning Service Request</h2>
<p><strong>Customer Details:</strong></p>
<ul>
  <li><strong>Name:</strong> {html.escape(fields.name)}</li>
  <li><strong>Phone:</strong> {html.escape(fields.phone)}</li>
  <li><strong>Address:</strong> {html.escape(fields.address)}</li>
</ul>
<p><strong>Request Time:</strong> {requested_at}</p>
<p><em>Please contact the customer within 1 hour.</em></p>
"""
        return Notification(
            from_email=self._from_email,
            to=self._recipients,
            subject=self._subject,
            text=text,
            html=html_body,
        )

    @staticmethod
    def _failed(
        trace: list[DispatchState],
        message: str,
        failure: FailureKind,
        *,
        field: Optional[str] = None,
        reason: Optional[Reason] = None,
        classification: Optional[RegionClassification] = None,
    ) -> DispatchResult:
        trace.append(DispatchState.FAILED)
        return DispatchResult(
            state=DispatchState.FAILED,
            message=message,
            failure=failure,
            field=field,
            reason=reason,
            classification=classification,
            trace=trace,
        )
