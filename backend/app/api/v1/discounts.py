"""
Discount campaign endpoints.
"""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import DatabaseSession, require_permission
from app.core.permissions import DASHBOARD
from app.core.security import User
from app.repositories.discount import DiscountRepository
from app.schemas.discount import (
    DiscountCampaignCreate,
    DiscountCampaignEnded,
    DiscountCampaignResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

CanUpdate = Annotated[User, Depends(require_permission(DASHBOARD, "update"))]


@router.post(
    "/discounts",
    response_model=DiscountCampaignResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_campaign(
    payload: DiscountCampaignCreate,
    db: DatabaseSession,
    user: CanUpdate,
) -> DiscountCampaignResponse:
    """
    Start a discount campaign.

    Sets ``discount`` on every product in scope: the product named by
    ``product_slug``, else every product in ``category``, else the whole
    catalog.

    Raises:
        HTTPException 404: ``product_slug`` names no product
    """
    try:
        campaign = await DiscountRepository(db).start_campaign(
            name=payload.name,
            percentage=payload.percentage,
            product_slug=payload.product_slug,
            category=payload.category,
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.info(
        f"Discount campaign '{campaign.name}' started on {campaign.scope}, "
        f"{campaign.products_affected} products affected",
        extra={"user_id": user.id},
    )
    return DiscountCampaignResponse(**campaign.to_dict())


@router.get("/discounts", response_model=List[DiscountCampaignResponse])
async def list_campaigns(
    db: DatabaseSession,
    user: CanUpdate,
    active_only: bool = Query(default=False),
) -> List[DiscountCampaignResponse]:
    campaigns = await DiscountRepository(db).list_campaigns(active_only=active_only)
    return [DiscountCampaignResponse(**c.to_dict()) for c in campaigns]


@router.delete("/discounts/{campaign_id}", response_model=DiscountCampaignEnded)
async def end_campaign(
    campaign_id: str,
    db: DatabaseSession,
    user: CanUpdate,
) -> DiscountCampaignEnded:
    """
    End a campaign and reset the discount in its scope to 0.

    Raises:
        HTTPException 404: Unknown campaign
        HTTPException 409: Campaign already ended
    """
    repo = DiscountRepository(db)
    campaign = await repo.get_campaign(campaign_id)
    if campaign is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")

    try:
        reset = await repo.end_campaign(campaign)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return DiscountCampaignEnded(
        message="Campaign ended",
        products_reset=reset,
        campaign=DiscountCampaignResponse(**campaign.to_dict()),
    )
