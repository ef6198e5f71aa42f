"""
Review repository for product reviews.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.review import Review


class ReviewRepository:
    """
    Repository for review data access.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_product(self, product_slug: str) -> list[Review]:
        """Reviews of one product, newest first."""
        stmt = (
            select(Review)
            .where(Review.product_slug == product_slug)
            .order_by(Review.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_review(
        self,
        product_slug: str,
        name: str,
        text: str,
        rating: int,
    ) -> Review:
        """
        Create a review.

        The caller is responsible for checking that the product exists;
        the foreign key rejects unknown slugs at flush time.
        """
        review = Review(
            product_slug=product_slug,
            name=name,
            text=text,
            rating=rating,
        )
        self.session.add(review)
        await self.session.flush()
        await self.session.refresh(review)
        return review
