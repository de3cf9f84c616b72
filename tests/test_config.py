"""Tests for Settings and startup validation."""

import logging

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from concierge.config import Settings
from concierge.logging_setup import log_request, redact_pii


def make_settings(**overrides):
    fields = dict(
        _env_file=None,
        resend_api_key="re_test",
        from_email="bookings@example.com",
        partner_emails="partner@example.com",
    )
    fields.update(overrides)
    return Settings(**fields)


class TestDefaults:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.rate_limit == 10
        assert s.rate_limit_window_seconds == 60.0
        assert s.notify_timeout_seconds == 10.0
        assert s.name_max_length == 100
        assert s.address_max_length == 200
        assert s.address_min_length == 10
        assert s.max_body_bytes == 10_000
        assert s.region_name == "San Francisco"

    def test_server_fields(self):
        server_fields = {"host", "port", "log_level", "max_body_bytes"}
        assert server_fields <= set(Settings.model_fields)
        assert "debug" not in Settings.model_fields

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT", "3")
        monkeypatch.setenv("PARTNER_EMAILS", "a@example.com,b@example.com")
        s = Settings(_env_file=None)
        assert s.rate_limit == 3
        assert s.recipients == ["a@example.com", "b@example.com"]


class TestRecipients:
    def test_trims_and_filters(self):
        s = make_settings(partner_emails=" a@example.com , bogus,, b@example.com ")
        assert s.recipients == ["a@example.com", "b@example.com"]

    def test_empty(self):
        assert make_settings(partner_emails="").recipients == []


class TestValidateStartup:
    def test_clean_configuration(self):
        assert make_settings().validate_startup() == []

    def test_invalid_from_email(self):
        with pytest.raises(ValueError, match="FROM_EMAIL"):
            make_settings(from_email="not-an-email").validate_startup()

    def test_no_partner_emails(self):
        with pytest.raises(ValueError, match="PARTNER_EMAILS is empty"):
            make_settings(partner_emails=" , ").validate_startup()

    def test_no_valid_partner_emails(self):
        with pytest.raises(ValueError, match="no valid email"):
            make_settings(partner_emails="bogus, also bogus").validate_startup()

    def test_invalid_recipient_is_dropped_with_warning(self):
        warnings = make_settings(partner_emails="a@example.com, bogus").validate_startup()
        assert warnings == ["Invalid email in PARTNER_EMAILS dropped: bogus"]

    def test_missing_api_key_warns(self):
        warnings = make_settings(resend_api_key="").validate_startup()
        assert len(warnings) == 1
        assert "RESEND_API_KEY" in warnings[0]

    @pytest.mark.parametrize("overrides", [
        {"rate_limit": 0},
        {"rate_limit_window_seconds": 0},
    ])
    def test_rate_settings_must_be_positive(self, overrides):
        with pytest.raises(ValueError, match="must be positive"):
            make_settings(**overrides).validate_startup()


class TestLoggingHelpers:
    @pytest.mark.parametrize("value, expected", [
        ("415-555-1234", "415***34"),
        ("12345", "***"),
        ("", "***"),
        (None, "***"),
    ])
    def test_redact_pii(self, value, expected):
        assert redact_pii(value) == expected

    def test_log_request_is_one_json_line(self, caplog):
        logger = logging.getLogger("concierge.test")
        with caplog.at_level(logging.INFO, logger="concierge.test"):
            log_request(logger, "tools/call", "1.2.3.4", {"hasName": True}, True)
        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert message.startswith("[REQUEST] {")
        assert '"method": "tools/call"' in message
        assert '"success": true' in message
