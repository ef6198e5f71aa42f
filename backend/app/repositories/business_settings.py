"""
Business settings repository.

Settings are append-only: every save inserts a row and readers take the
latest one.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.business_settings import BusinessSettings


class BusinessSettingsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_settings(self, data: dict[str, Any]) -> BusinessSettings:
        """
        Insert a new settings row.

        Args:
            data: Settings fields; ``social_links`` is serialized to JSON

        Returns:
            Created BusinessSettings instance
        """
        row = BusinessSettings(
            business_name=data["business_name"],
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            currency=data.get("currency") or "GHS",
            logo_url=data.get("logo_url"),
            tax_rate=data.get("tax_rate") or 0.0,
        )
        row.set_social_links(data.get("social_links") or {})
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return row

    async def get_latest(self) -> Optional[BusinessSettings]:
        stmt = (
            select(BusinessSettings)
            .order_by(BusinessSettings.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
