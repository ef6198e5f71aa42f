"""
Pydantic schemas for product reviews.

The create body is validated by the router so that malformed input returns
400 with the storefront's error messages instead of a 422.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_name: Optional[Any] = Field(default=None, alias="customerName")
    review: Optional[Any] = None
    product_slug: Optional[Any] = Field(default=None, alias="productSlug")
    rating: Optional[Any] = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    text: str
    rating: int
    product_slug: str
    created_at: str
