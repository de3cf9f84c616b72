"""Tests for ResendNotifier against a mocked HTTP transport."""

import json

import httpx
import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from concierge.errors import NotifierError
from concierge.models.booking import Notification
from concierge.notifiers.resend import RESEND_API_URL, ResendNotifier


def make_notification(**overrides):
    fields = dict(
        from_email="bookings@example.com",
        to=["partner@example.com"],
        subject="Cleaning Request - SF",
        text="New cleaning service request",
        html="<h2>New Cleaning Service Request</h2>",
    )
    fields.update(overrides)
    return Notification(**fields)


def make_notifier(handler, api_key="re_test_key"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResendNotifier(api_key=api_key, client=client)


class TestSend:
    async def test_posts_payload_and_returns_id(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": "email_abc123"})

        notifier = make_notifier(handler)
        message_id = await notifier.send(make_notification())
        await notifier.close()

        assert message_id == "email_abc123"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == RESEND_API_URL
        assert request.headers["Authorization"] == "Bearer re_test_key"
        body = json.loads(request.content)
        assert body == {
            "from": "bookings@example.com",
            "to": ["partner@example.com"],
            "subject": "Cleaning Request - SF",
            "text": "New cleaning service request",
            "html": "<h2>New Cleaning Service Request</h2>",
        }

    async def test_omits_empty_html(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "x"})

        notifier = make_notifier(handler)
        await notifier.send(make_notification(html=""))
        assert "html" not in seen[0]

    async def test_non_json_success_body(self):
        notifier = make_notifier(lambda request: httpx.Response(200, text="ok"))
        assert await notifier.send(make_notification()) == ""

    async def test_http_error_status_raises(self):
        notifier = make_notifier(
            lambda request: httpx.Response(422, json={"message": "Invalid `from` field"})
        )
        with pytest.raises(NotifierError, match="HTTP 422"):
            await notifier.send(make_notification())

    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        notifier = make_notifier(handler)
        with pytest.raises(NotifierError, match="Resend request failed"):
            await notifier.send(make_notification())


class TestPreconditions:
    async def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("RESEND_API_KEY", raising=False)
        calls = []
        notifier = make_notifier(lambda request: calls.append(request), api_key=None)
        with pytest.raises(NotifierError, match="RESEND_API_KEY"):
            await notifier.send(make_notification())
        assert calls == []

    async def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("RESEND_API_KEY", "re_env_key")
        seen = []

        def handler(request):
            seen.append(request.headers["Authorization"])
            return httpx.Response(200, json={"id": "1"})

        notifier = make_notifier(handler, api_key=None)
        await notifier.send(make_notification())
        assert seen == ["Bearer re_env_key"]

    async def test_no_recipients(self):
        notifier = make_notifier(lambda request: httpx.Response(200, json={"id": "1"}))
        with pytest.raises(NotifierError, match="No recipients"):
            await notifier.send(make_notification(to=[]))
