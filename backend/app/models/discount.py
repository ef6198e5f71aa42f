"""
Discount campaign model.

A campaign applies one percentage to a scope of products: a single product,
a category, or the whole catalog.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Float, Integer, String

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin


class DiscountCampaign(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Promotional discount campaign.

    Attributes:
        name: Campaign name
        percentage: Discount percentage, 0..100
        product_slug: Target product (takes precedence over category)
        category: Target category when no product is given
        is_active: False once the campaign has been ended
        ended_at: When the campaign was ended
        products_affected: Number of products updated when it started
    """

    __tablename__ = "discount_campaigns"

    name = Column(String(255), nullable=False)
    percentage = Column(Float, nullable=False)
    product_slug = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    ended_at = Column(String, nullable=True)
    products_affected = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_discount_campaigns_percentage_range",
        ),
    )

    @property
    def scope(self) -> str:
        if self.product_slug:
            return f"product:{self.product_slug}"
        if self.category:
            return f"category:{self.category}"
        return "all"
