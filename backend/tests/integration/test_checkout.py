"""
Integration tests for checkout.
"""

import httpx
import pytest
from sqlalchemy import select

from app.main import app
from app.models.order import Order
from app.services.email import EmailDeliveryError, EmailService, get_email_service

pytestmark = pytest.mark.anyio

ORDER = {
    "fullName": "Ama Mensah",
    "email": "ama@example.com",
    "phone": "+233201234567",
    "address": "12 Adum Road, Kumasi",
    "cartItems": [{"id": "p1", "name": "Kente Stole", "price": 150, "quantity": 2}],
    "total": 300,
}


async def test_checkout_stores_order_and_emails(client, email_service, session):
    response = await client.post("/api/checkout", json=ORDER)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    order_id = body["orderId"]

    order = (await session.execute(select(Order).where(Order.id == order_id))).scalar_one()
    assert order.customer_name == "Ama Mensah"
    assert order.total_amount == 300

    email_service.send_order_confirmation.assert_awaited_once()
    kwargs = email_service.send_order_confirmation.await_args.kwargs
    assert kwargs["order_id"] == order_id
    assert kwargs["items"][0]["name"] == "Kente Stole"


async def test_email_failure_still_succeeds(client, email_service):
    email_service.send_order_confirmation.side_effect = EmailDeliveryError(502, "bad gateway")

    response = await client.post("/api/checkout", json=ORDER)

    assert response.status_code == 200
    assert response.json()["success"] is True


async def test_empty_cart_rejected(client, email_service):
    response = await client.post("/api/checkout", json={**ORDER, "cartItems": []})

    assert response.status_code == 422
    email_service.send_order_confirmation.assert_not_awaited()


async def test_unreadable_email_reply_keeps_the_order(client, session):
    resend = EmailService(
        api_key="re_test_key",
        base_url="https://resend.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>ok</html>")),
    )
    app.dependency_overrides[get_email_service] = lambda: resend

    response = await client.post("/api/checkout", json=ORDER)

    assert response.status_code == 200
    order_id = response.json()["orderId"]
    orders = (await session.execute(select(Order))).scalars().all()
    assert [o.id for o in orders] == [order_id]
