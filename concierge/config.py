"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

from concierge.validation.fields import validate_email

log = logging.getLogger("concierge.config")


class Settings(BaseSettings):
    # Notifier (Resend)
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    from_email: str = "onboarding@resend.dev"
    partner_emails: str = ""
    notify_timeout_seconds: float = 10.0

    # Rate limiting
    rate_limit: int = 10
    rate_limit_window_seconds: float = 60.0
    rate_limit_cleanup_probability: float = 0.01

    # Field bounds
    name_max_length: int = 100
    address_max_length: int = 200
    address_min_length: int = 10

    # Service region
    region_name: str = "San Francisco"
    region_keywords: list[str] = [
        "sf",
        "san francisco",
        "sanfrancisco",
        "s.f.",
        "san fran",
    ]
    region_exclusions: list[str] = ["south san francisco"]
    # Inclusive ranges: 940xx and 94100-94189
    region_postal_ranges: list[tuple[int, int]] = [(94000, 94099), (94100, 94189)]
    region_timezone: str = "America/Los_Angeles"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"
    max_body_bytes: int = 10_000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def recipients(self) -> list[str]:
        """Partner addresses that pass the email check, in configured order."""
        emails = [e.strip() for e in self.partner_emails.split(",")]
        return [e for e in emails if e and validate_email(e)]

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        if not validate_email(self.from_email):
            raise ValueError(f"FROM_EMAIL is not a valid address: {self.from_email!r}")

        configured = [e.strip() for e in self.partner_emails.split(",") if e.strip()]
        if not configured:
            raise ValueError("PARTNER_EMAILS is empty. Set at least one recipient in .env.")

        valid = self.recipients
        if not valid:
            raise ValueError("PARTNER_EMAILS contains no valid email addresses.")
        for email in configured:
            if email not in valid:
                warnings.append(f"Invalid email in PARTNER_EMAILS dropped: {email}")

        if not self.resend_api_key:
            warnings.append(
                "RESEND_API_KEY not set. Booking notifications will fail until it is configured."
            )

        if self.rate_limit < 1 or self.rate_limit_window_seconds <= 0:
            raise ValueError("RATE_LIMIT and RATE_LIMIT_WINDOW_SECONDS must be positive.")

        return warnings


settings = Settings()
