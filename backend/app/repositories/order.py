"""
Order repository for checkout.
"""

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import Order


class OrderRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_order(
        self,
        customer_name: str,
        email: str,
        phone: str,
        address: str,
        total_amount: float,
        items: list[dict[str, Any]],
    ) -> Order:
        order = Order(
            customer_name=customer_name,
            email=email,
            phone=phone,
            address=address,
            total_amount=total_amount,
            status="pending",
        )
        order.set_items(items)
        self.session.add(order)
        await self.session.flush()
        await self.session.refresh(order)
        return order

    async def get_order(self, order_id: str) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def summarize(self) -> tuple[int, float]:
        """Return (order count, revenue summed over ``total_amount``)."""
        stmt = select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0.0))
        count, revenue = (await self.session.execute(stmt)).one()
        return int(count or 0), float(revenue or 0.0)
