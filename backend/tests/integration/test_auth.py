"""
Integration tests for sign-up, login and email verification.
"""

from datetime import timedelta

import httpx
import pytest

from app.core.security import create_access_token, create_email_verification_token
from app.main import app
from app.services.email import EmailDeliveryError, EmailService, get_email_service

pytestmark = pytest.mark.anyio

SIGN_UP = {"name": "Ama Mensah", "email": "Ama@Example.com", "password": "kente-1234"}


async def test_sign_up_creates_user_and_sends_verification(client, email_service):
    response = await client.post("/api/auth/sign-up", json=SIGN_UP)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "ama@example.com"
    assert data["role"] == "user"
    assert data["email_verified"] is False
    assert "password" not in data and "hashed_password" not in data

    email_service.send_verification_email.assert_awaited_once()
    name, email, url = email_service.send_verification_email.await_args.args
    assert (name, email) == ("Ama Mensah", "ama@example.com")
    assert url.startswith("http://test/api/auth/verify-email?token=")


async def test_admin_email_gets_admin_role(client):
    response = await client.post(
        "/api/auth/sign-up",
        json={"name": "Owner", "email": "owner@example.com", "password": "kente-1234"},
    )
    assert response.json()["role"] == "admin"


async def test_duplicate_email_conflicts(client):
    await client.post("/api/auth/sign-up", json=SIGN_UP)
    response = await client.post("/api/auth/sign-up", json={**SIGN_UP, "email": "ama@example.com"})

    assert response.status_code == 409


@pytest.mark.parametrize("password", ["short", "x" * 101])
async def test_password_length_enforced(client, password):
    response = await client.post("/api/auth/sign-up", json={**SIGN_UP, "password": password})
    assert response.status_code == 422


async def test_email_failure_does_not_fail_sign_up(client, email_service):
    email_service.send_verification_email.side_effect = EmailDeliveryError(500, "down")

    response = await client.post("/api/auth/sign-up", json=SIGN_UP)

    assert response.status_code == 201


async def test_login_and_me(client):
    await client.post("/api/auth/sign-up", json=SIGN_UP)

    login = await client.post(
        "/api/auth/token",
        data={"username": "ama@example.com", "password": "kente-1234"},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["token_type"] == "bearer"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "ama@example.com"


async def test_wrong_password_rejected(client, customer):
    response = await client.post(
        "/api/auth/token",
        data={"username": "ama@example.com", "password": "wrong-password"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect email or password"


async def test_banned_user_cannot_log_in(client, banned_headers):
    response = await client.post(
        "/api/auth/token",
        data={"username": "kofi@example.com", "password": "testpass123"},
    )
    assert response.status_code == 401


async def test_me_requires_valid_token(client, customer):
    expired = create_access_token({"sub": customer.id}, expires_delta=timedelta(minutes=-1))

    missing = await client.get("/api/auth/me")
    invalid = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    stale = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})

    assert missing.status_code in (401, 403)
    assert invalid.status_code == 401
    assert stale.status_code == 401


async def test_verify_email(client, customer):
    token = create_email_verification_token(customer.id)

    response = await client.get("/api/auth/verify-email", params={"token": token})

    assert response.status_code == 200
    assert response.json() == {"message": "Email verified"}


async def test_access_token_is_not_a_verification_link(client, customer):
    token = create_access_token({"sub": customer.id})

    response = await client.get("/api/auth/verify-email", params={"token": token})

    assert response.status_code == 400


async def test_verification_token_is_not_an_access_token(client, customer):
    token = create_email_verification_token(customer.id)

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_unreadable_email_reply_does_not_fail_sign_up(client):
    resend = EmailService(
        api_key="re_test_key",
        base_url="https://resend.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="queued")),
    )
    app.dependency_overrides[get_email_service] = lambda: resend

    response = await client.post("/api/auth/sign-up", json=SIGN_UP)

    assert response.status_code == 201
