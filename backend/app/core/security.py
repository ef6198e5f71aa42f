"""
Security module for authentication and authorization.

Provides JWT token handling, password hashing, and authentication utilities
using python-jose and bcrypt.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import bcrypt
from pydantic import BaseModel, Field

from app.core.config import settings

# JWT Algorithm
ALGORITHM = "HS256"

# Token purposes; access tokens must not be accepted as verification links
ACCESS_PURPOSE = "access"
VERIFY_EMAIL_PURPOSE = "verify_email"


class TokenData(BaseModel):
    """
    JWT token payload data model.

    Contains the claims stored in the JWT token.
    """
    user_id: str
    purpose: str = ACCESS_PURPOSE
    exp: Optional[datetime] = None


class User(BaseModel):
    """
    Authenticated user as seen by route handlers.

    Never carries the password hash.
    """
    id: str
    name: str
    email: str
    role: str = "user"
    email_verified: bool = False
    disabled: bool = False


class UserInDB(User):
    """
    User model with hashed password for credential checks.

    Never expose this model through the API - use User instead.
    """
    hashed_password: str

    def public(self) -> User:
        return User(**self.model_dump(exclude={"hashed_password"}))


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode('utf-8')
    # Truncate to 72 bytes if needed (bcrypt limit)
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]
    return password_bytes


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    if isinstance(hashed_password, str):
        hashed_bytes = hashed_password.encode('utf-8')
    else:
        hashed_bytes = hashed_password

    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_bytes)
    except ValueError:
        # Malformed hash in storage
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Note:
        Bcrypt has a 72-byte password limit. Passwords are automatically
        truncated if necessary.
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode('utf-8')


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    purpose: str = ACCESS_PURPOSE,
) -> str:
    """
    Create a JWT token.

    Args:
        data: Dictionary of claims to encode in the token (``sub`` = user id)
        expires_delta: Optional custom expiration time
        purpose: Token purpose claim

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token({"sub": user.id})
        >>> # Use token in Authorization header: Bearer <token>
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "purpose": purpose})

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=ALGORITHM
    )


def create_email_verification_token(user_id: str) -> str:
    return create_access_token(
        {"sub": user_id},
        expires_delta=timedelta(minutes=settings.email_verification_expire_minutes),
        purpose=VERIFY_EMAIL_PURPOSE,
    )


def decode_access_token(
    token: str,
    purpose: str = ACCESS_PURPOSE,
) -> Optional[TokenData]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode
        purpose: Required purpose claim

    Returns:
        TokenData if valid, None if invalid, expired or issued for another purpose
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM]
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    if payload.get("purpose", ACCESS_PURPOSE) != purpose:
        return None

    return TokenData(user_id=user_id, purpose=purpose, exp=payload.get("exp"))


def _to_user_in_db(user) -> UserInDB:  # noqa: ANN001
    return UserInDB(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        email_verified=bool(user.email_verified),
        disabled=bool(user.banned),
        hashed_password=user.hashed_password,
    )


async def get_user(user_id: str) -> Optional[UserInDB]:
    """
    Retrieve user from database by id.

    Returns:
        UserInDB if found, None otherwise
    """
    from app.core.database import async_session_maker
    from app.repositories.user import UserRepository

    async with async_session_maker() as session:
        user = await UserRepository(session).get_by_id(user_id)
    return _to_user_in_db(user) if user else None


async def get_user_by_email(email: str) -> Optional[UserInDB]:
    from app.core.database import async_session_maker
    from app.repositories.user import UserRepository

    async with async_session_maker() as session:
        user = await UserRepository(session).get_by_email(email)
    return _to_user_in_db(user) if user else None


async def authenticate_user(email: str, password: str) -> Optional[User]:
    """
    Authenticate a user with email and password.

    Returns:
        User if authentication successful, None otherwise

    Example:
        user = await authenticate_user("ama@example.com", "password123")
        if user:
            token = create_access_token({"sub": user.id})
    """
    user = await get_user_by_email(email)

    if not user:
        return None

    if not verify_password(password, user.hashed_password):
        return None

    if user.disabled:
        return None

    return user.public()


class Token(BaseModel):
    """
    Access token response model.

    Returned by the login endpoint after successful authentication.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
