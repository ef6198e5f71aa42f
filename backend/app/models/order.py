"""
Order model for completed checkouts.
"""

from sqlalchemy import Column, Float, String, Text

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin, load_json, dump_json


class Order(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Customer order created at checkout.

    Attributes:
        customer_name: Full name entered at checkout
        email: Confirmation email address
        phone: Contact phone
        address: Delivery address
        total_amount: Order total in GH₵
        items: JSON list of cart items ({id, name, price, quantity, ...})
        status: "pending", "paid", "shipped", "delivered" or "cancelled"
    """

    __tablename__ = "orders"
    __json_columns__ = {"items": []}

    customer_name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, index=True)
    phone = Column(String(64), nullable=False)
    address = Column(Text, nullable=False)
    total_amount = Column(Float, nullable=False)
    items = Column(Text, nullable=False, default="[]")
    status = Column(String(32), nullable=False, default="pending")

    def get_items(self) -> list[dict]:
        return load_json(self.items, [])

    def set_items(self, items: list[dict]) -> None:
        self.items = dump_json(items or [])
