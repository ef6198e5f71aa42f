"""
Business settings endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import DatabaseSession, require_permission
from app.core.permissions import DASHBOARD
from app.core.security import User
from app.models.business_settings import BusinessSettings
from app.repositories.business_settings import BusinessSettingsRepository
from app.schemas.business_settings import BusinessSettingsCreate, BusinessSettingsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(row: BusinessSettings) -> BusinessSettingsResponse:
    return BusinessSettingsResponse(**row.to_dict())


@router.post("/business-settings", response_model=BusinessSettingsResponse)
async def save_settings(
    payload: BusinessSettingsCreate,
    db: DatabaseSession,
    user: Annotated[User, Depends(require_permission(DASHBOARD, "create"))],
) -> BusinessSettingsResponse:
    """
    Save business settings as a new row.

    Raises:
        HTTPException 500: Storage failure
    """
    try:
        row = await BusinessSettingsRepository(db).create_settings(payload.model_dump())
    except SQLAlchemyError:
        logger.error("Failed to save business settings", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )
    return _to_response(row)


@router.get("/business-settings", response_model=BusinessSettingsResponse)
async def get_settings(db: DatabaseSession) -> BusinessSettingsResponse:
    """Most recently saved settings."""
    try:
        row = await BusinessSettingsRepository(db).get_latest()
    except SQLAlchemyError:
        logger.error("Failed to fetch business settings", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )

    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Business settings not configured",
        )
    return _to_response(row)
