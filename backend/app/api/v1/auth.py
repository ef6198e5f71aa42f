"""
Authentication endpoints.

Provides account sign-up with email verification and JWT token issuance
for storefront customers and dashboard administrators.
"""

import logging
from datetime import timedelta
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from app.api.dependencies import CurrentUser, DatabaseSession
from app.core.config import settings
from app.core.permissions import ROLE_ADMIN, ROLE_USER
from app.core.security import (
    VERIFY_EMAIL_PURPOSE,
    authenticate_user,
    create_access_token,
    create_email_verification_token,
    decode_access_token,
    get_password_hash,
    Token,
    User,
)
from app.repositories.user import UserRepository
from app.schemas.user import MessageResponse, SignUpRequest, SignUpResponse
from app.services.email import (
    EmailConfigurationError,
    EmailDeliveryError,
    EmailService,
    get_email_service,
)

logger = logging.getLogger(__name__)

# Create router for authentication endpoints
router = APIRouter()


@router.post(
    "/sign-up",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sign_up(
    payload: SignUpRequest,
    request: Request,
    db: DatabaseSession,
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> SignUpResponse:
    """
    Register a new account.

    Emails listed in ADMIN_EMAILS are created with the admin role. A
    verification link is emailed to the user; a delivery failure is logged
    and does not fail the registration.

    Raises:
        HTTPException 409: If the email is already registered
        HTTPException 422: If the password length is out of bounds
    """
    repo = UserRepository(db)
    role = ROLE_ADMIN if payload.email in settings.admin_emails else ROLE_USER

    try:
        user = await repo.create_user(
            name=payload.name,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role=role,
        )
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    token = create_email_verification_token(user.id)
    verify_url = str(request.url_for("verify_email").include_query_params(token=token))

    try:
        await email_service.send_verification_email(user.name, user.email, verify_url)
    except (EmailConfigurationError, EmailDeliveryError, httpx.HTTPError) as e:
        logger.error(
            f"Failed to send verification email: {e}",
            extra={"user_id": user.id},
        )

    logger.info("User signed up", extra={"user_id": user.id})

    return SignUpResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        email_verified=bool(user.email_verified),
    )


@router.post("/token", response_model=Token, status_code=status.HTTP_200_OK)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """
    OAuth2 compatible token login endpoint.

    The form's ``username`` field carries the account email.

    Raises:
        HTTPException 401: If credentials are invalid or the account is banned

    Example:
        POST /api/auth/token
        Content-Type: application/x-www-form-urlencoded

        username=ama@example.com&password=changeme123

        Response:
        {
            "access_token": "eyJ...",
            "token_type": "bearer"
        }

    Security:
        - Credentials are validated against database (bcrypt hash comparison)
        - Generic error message on failure (don't reveal if the email exists)
    """
    user = await authenticate_user(form_data.username, form_data.password)

    if not user:
        # Generic error message - don't reveal if the account exists
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.id},
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes)
    )

    return Token(access_token=access_token, token_type="bearer")


@router.get("/me", response_model=User)
async def read_users_me(current_user: CurrentUser) -> User:
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.
    """
    return current_user


@router.get("/verify-email", response_model=MessageResponse, name="verify_email")
async def verify_email(
    db: DatabaseSession,
    token: str = Query(..., description="Verification token from the email link"),
) -> MessageResponse:
    """
    Mark an email address as verified.

    Raises:
        HTTPException 400: If the token is invalid, expired, or not a
            verification token
    """
    token_data = decode_access_token(token, purpose=VERIFY_EMAIL_PURPOSE)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification link",
        )

    user = await UserRepository(db).mark_email_verified(token_data.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification link",
        )

    return MessageResponse(message="Email verified")
