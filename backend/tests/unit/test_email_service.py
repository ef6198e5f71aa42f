"""Tests for the Resend email client."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from app.core import retry as retry_module
from app.services.email import EmailConfigurationError, EmailDeliveryError, EmailService

pytestmark = pytest.mark.anyio


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(retry_module, "asyncio", SimpleNamespace(sleep=AsyncMock()))


def service_with(handler):
    return EmailService(
        api_key="re_test_key",
        base_url="https://resend.test",
        sender="store@example.com",
        transport=httpx.MockTransport(handler),
    )


async def test_send_email_posts_to_resend():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    result = await service_with(handler).send_email("ama@example.com", "Hello", "<p>Hi</p>")

    assert result == {"id": "email_123"}
    assert captured["url"] == "https://resend.test/emails"
    assert captured["auth"] == "Bearer re_test_key"
    assert captured["body"] == {
        "from": "store@example.com",
        "to": ["ama@example.com"],
        "subject": "Hello",
        "html": "<p>Hi</p>",
    }


async def test_order_confirmation_subject_and_body():
    captured = {}

    def handler(request):
        captured.update(json.loads(request.content))
        return httpx.Response(200, json={"id": "email_1"})

    await service_with(handler).send_order_confirmation(
        name="Ama",
        email="ama@example.com",
        order_id="order-9",
        total=300,
        items=[{"name": "Kente", "quantity": 2, "price": 150}],
    )

    assert captured["subject"] == "Order Confirmation"
    assert "order-9" in captured["html"]
    assert "Kente x 2 = GH₵300.00" in captured["html"]


async def test_api_error_raises_delivery_error_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    with pytest.raises(EmailDeliveryError) as exc_info:
        await service_with(handler).send_email("bad", "Hi", "<p></p>")

    assert exc_info.value.status_code == 422
    assert len(calls) == 1


async def test_transport_errors_are_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"id": "email_2"})

    result = await service_with(handler).send_email("ama@example.com", "Hi", "<p></p>")

    assert result["id"] == "email_2"
    assert len(calls) == 3


async def test_missing_api_key():
    service = EmailService(api_key="")
    with pytest.raises(EmailConfigurationError):
        await service.send_verification_email("Ama", "ama@example.com", "http://test/verify")


@pytest.mark.parametrize(
    "reply",
    [
        httpx.Response(200, text="<html>ok</html>"),
        httpx.Response(200, json=["email_123"]),
    ],
)
async def test_unreadable_success_body_is_a_delivery_error(reply):
    service = service_with(lambda request: reply)

    with pytest.raises(EmailDeliveryError):
        await service.send_email("ama@example.com", "Hello", "<p>Hi</p>")
