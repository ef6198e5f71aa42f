"""
Pydantic schemas for discount campaigns.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DiscountCampaignCreate(BaseModel):
    """
    Request body for starting a campaign.

    Scope: ``product_slug`` if given, else ``category``, else every product.
    """
    name: str = Field(..., min_length=1, max_length=255)
    percentage: float = Field(..., ge=0, le=100)
    product_slug: Optional[str] = None
    category: Optional[str] = None


class DiscountCampaignResponse(BaseModel):
    id: str
    name: str
    percentage: float
    product_slug: Optional[str] = None
    category: Optional[str] = None
    is_active: bool
    ended_at: Optional[str] = None
    products_affected: int
    created_at: str


class DiscountCampaignEnded(BaseModel):
    message: str
    products_reset: int
    campaign: DiscountCampaignResponse
