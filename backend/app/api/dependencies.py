"""
FastAPI dependency functions.

Provides reusable dependency injection functions for FastAPI routes,
including authentication, role and permission checks, and database sessions.
"""

from typing import Annotated, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.permissions import ROLE_ADMIN, has_permission
from app.core.security import decode_access_token, get_user, User


# HTTP Bearer token scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    Extracts and validates the JWT token from the Authorization header,
    then loads the user it was issued for.

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or user not found

    Example:
        @router.get("/auth/me")
        async def me(current_user: CurrentUser):
            return current_user

    Security:
        - Validates JWT signature using SECRET_KEY
        - Checks token expiration and purpose (verification links are rejected)
        - Verifies user exists in database
        - Returns 401 with WWW-Authenticate header on any failure
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = decode_access_token(credentials.credentials)
    if token_data is None:
        raise credentials_exception

    user = await get_user(token_data.user_id)
    if user is None:
        raise credentials_exception

    return user.public()


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Dependency to get the current active (non-banned) user.

    Raises:
        HTTPException 403: If the account is banned
    """
    if current_user.disabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is banned"
        )

    return current_user


async def get_admin_user(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> User:
    """
    Dependency requiring the admin role.

    Raises:
        HTTPException 403: If the user is not an admin
    """
    if current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden - Admin access required"
        )
    return current_user


def require_permission(resource: str, action: str) -> Callable:
    """
    Build a dependency that checks one ``resource:action`` permission.

    Example:
        @router.post("/products")
        async def create(user: Annotated[User, Depends(require_permission("Dashboard", "create"))]):
            ...
    """
    async def check_permission(
        current_user: Annotated[User, Depends(get_current_active_user)],
    ) -> User:
        if not has_permission(current_user.role, resource, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return current_user

    return check_permission


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentActiveUser = Annotated[User, Depends(get_current_active_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
