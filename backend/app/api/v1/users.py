"""
User management endpoints for administrators.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import AdminUser, DatabaseSession
from app.core.permissions import is_valid_role
from app.repositories.user import UserRepository
from app.schemas.user import RoleUpdate, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/user", response_model=List[UserPublic])
async def list_users(db: DatabaseSession, admin: AdminUser) -> List[UserPublic]:
    """
    All users (public fields only).

    The calling admin is itself a row, so the 404 only fires if the table
    is emptied between authentication and the query.

    Raises:
        HTTPException 404: No users exist
        HTTPException 500: Database failure
    """
    try:
        users = await UserRepository(db).list_users()
    except SQLAlchemyError:
        logger.error("Failed to fetch users", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user",
        )

    if not users:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return [UserPublic(**user.public_dict()) for user in users]


@router.get("/user/{user_id}", response_model=UserPublic)
async def get_user(user_id: str, db: DatabaseSession, admin: AdminUser) -> UserPublic:
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserPublic(**user.public_dict())


@router.patch("/user/{user_id}", response_model=UserPublic)
async def update_role(
    user_id: str,
    payload: RoleUpdate,
    db: DatabaseSession,
    admin: AdminUser,
) -> UserPublic:
    """
    Change a user's role.

    Raises:
        HTTPException 400: Role missing or not one of user/admin
        HTTPException 404: Unknown user
    """
    if not payload.role:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role is required")

    if not is_valid_role(payload.role):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")

    user = await UserRepository(db).update_role(user_id, payload.role)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info(
        f"Role of user {user_id} set to {payload.role}",
        extra={"user_id": admin.id},
    )
    return UserPublic(**user.public_dict())
