"""
Product model for the storefront catalog.

Products are addressed publicly by ``slug``; reviews reference the slug
rather than the UUID so that storefront URLs stay stable.
"""

from sqlalchemy import CheckConstraint, Column, Float, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin, load_json, dump_json


class Product(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Catalog product.

    Attributes:
        id: UUID primary key
        name: Product name
        slug: URL-safe unique identifier derived from the name
        description: Long description
        category: Top-level category (e.g. "kente", "beads")
        subcategories: JSON list of subcategory names
        colors: JSON list of available colours
        price: Base price in GH₵
        discount: Percentage discount, 0..100
        rating_from_manufacturer: Manufacturer's rating
        customer_rating: Average customer rating
        images: JSON list of image URLs or {"url": ...} objects
    """

    __tablename__ = "products"
    __json_columns__ = {"subcategories": [], "colors": [], "images": []}

    name = Column(String(255), nullable=False)

    slug = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        doc="URL-safe unique identifier"
    )

    description = Column(Text, nullable=False, default="")

    category = Column(String(100), nullable=False, index=True)

    subcategories = Column(Text, nullable=False, default="[]")

    colors = Column(Text, nullable=False, default="[]")

    price = Column(Float, nullable=False, default=0.0)

    discount = Column(
        Float,
        nullable=False,
        default=0.0,
        doc="Percentage discount applied at display and checkout"
    )

    rating_from_manufacturer = Column(Float, nullable=False, default=0.0)

    customer_rating = Column(Float, nullable=False, default=0.0)

    images = Column(Text, nullable=False, default="[]")

    reviews = relationship(
        "Review",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("discount >= 0 AND discount <= 100", name="ck_products_discount_range"),
        CheckConstraint("price >= 0", name="ck_products_price_positive"),
    )

    def get_images(self) -> list:
        return load_json(self.images, [])

    def set_images(self, images: list) -> None:
        self.images = dump_json(images or [])

    def get_subcategories(self) -> list[str]:
        return load_json(self.subcategories, [])

    def set_subcategories(self, subcategories: list[str]) -> None:
        self.subcategories = dump_json(subcategories or [])

    def get_colors(self) -> list[str]:
        return load_json(self.colors, [])

    def set_colors(self, colors: list[str]) -> None:
        self.colors = dump_json(colors or [])
