"""
Discount campaign repository.

Starting a campaign writes the discount onto every product in its scope;
ending it resets those products to no discount.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now_iso
from app.models.discount import DiscountCampaign
from app.repositories.product import ProductRepository


class DiscountRepository:
    """
    Repository for discount campaigns.

    Attributes:
        session: SQLAlchemy async session for database operations
        products: Product repository sharing the same session
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.products = ProductRepository(session)

    async def get_campaign(self, campaign_id: str) -> Optional[DiscountCampaign]:
        stmt = select(DiscountCampaign).where(DiscountCampaign.id == campaign_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_campaigns(self, active_only: bool = False) -> list[DiscountCampaign]:
        stmt = select(DiscountCampaign).order_by(DiscountCampaign.created_at.desc())
        if active_only:
            stmt = stmt.where(DiscountCampaign.is_active.is_(True))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def start_campaign(
        self,
        name: str,
        percentage: float,
        product_slug: Optional[str] = None,
        category: Optional[str] = None,
    ) -> DiscountCampaign:
        """
        Create a campaign and apply its discount.

        Raises:
            LookupError: If ``product_slug`` names no product
        """
        if product_slug and not await self.products.slug_exists(product_slug):
            raise LookupError(f"Product '{product_slug}' not found")

        affected = await self.products.apply_discount(
            percentage,
            product_slug=product_slug,
            category=None if product_slug else category,
        )

        campaign = DiscountCampaign(
            name=name,
            percentage=percentage,
            product_slug=product_slug,
            category=None if product_slug else category,
            is_active=True,
            products_affected=affected,
        )
        self.session.add(campaign)
        await self.session.flush()
        await self.session.refresh(campaign)
        return campaign

    async def end_campaign(self, campaign: DiscountCampaign) -> int:
        """
        Deactivate a campaign and clear the discount in its scope.

        Returns:
            Number of products reset

        Raises:
            ValueError: If the campaign has already ended
        """
        if not campaign.is_active:
            raise ValueError(f"Campaign '{campaign.id}' has already ended")

        reset = await self.products.apply_discount(
            0.0,
            product_slug=campaign.product_slug,
            category=campaign.category,
        )
        campaign.is_active = False
        campaign.ended_at = utc_now_iso()
        await self.session.flush()
        return reset
