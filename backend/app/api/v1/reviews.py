"""
Product review endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import DatabaseSession
from app.repositories.product import ProductRepository
from app.repositories.review import ReviewRepository
from app.schemas.review import ReviewCreate, ReviewResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _valid_rating(value) -> bool:  # noqa: ANN001
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return float(value).is_integer()


@router.get("/review/{slug}", response_model=List[ReviewResponse])
async def list_reviews(slug: str, db: DatabaseSession) -> List[ReviewResponse]:
    """Reviews for a product, newest first."""
    try:
        reviews = await ReviewRepository(db).list_for_product(slug)
    except SQLAlchemyError:
        logger.error(f"Failed to fetch reviews for {slug}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch reviews",
        )
    return [ReviewResponse.model_validate(review) for review in reviews]


@router.post("/review", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(payload: ReviewCreate, db: DatabaseSession) -> ReviewResponse:
    """
    Add a review to a product.

    Raises:
        HTTPException 400: Missing fields, non-numeric rating, or rating
            outside 1..5
        HTTPException 404: Unknown product
    """
    if (
        not payload.customer_name
        or not payload.review
        or not payload.product_slug
        or not _valid_rating(payload.rating)
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing or invalid fields",
        )

    rating = int(payload.rating)
    if rating < 1 or rating > 5:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Rating must be between 1 and 5",
        )

    product = await ProductRepository(db).get_by_slug(str(payload.product_slug))
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    review = await ReviewRepository(db).create_review(
        product_slug=product.slug,
        name=str(payload.customer_name),
        text=str(payload.review),
        rating=rating,
    )
    return ReviewResponse.model_validate(review)
