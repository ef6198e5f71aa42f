"""
Review model for customer product reviews.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin


class Review(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Customer review of a product.

    Reviews are keyed to the product's slug and are deleted with the product.

    Attributes:
        name: Reviewer's display name
        text: Review body
        rating: Star rating, 1..5
        product_slug: Slug of the reviewed product
    """

    __tablename__ = "reviews"

    name = Column(String(255), nullable=False)

    text = Column(Text, nullable=False)

    rating = Column(Integer, nullable=False)

    product_slug = Column(
        String(255),
        ForeignKey("products.slug", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
        doc="Slug of the reviewed product"
    )

    product = relationship("Product", back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )
