"""
Pydantic schemas for catalog endpoints.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models.product import Product


ImageRef = Union[str, dict[str, Any]]


class ProductCreate(BaseModel):
    """
    Request body for creating a product.

    ``slug`` is derived from ``name`` unless given; either way it is slugified.
    """
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="")
    slug: Optional[str] = Field(default=None, max_length=255)
    subcategories: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    price: float = Field(default=0.0, ge=0)
    discount: float = Field(default=0.0, ge=0, le=100)
    rating_from_manufacturer: float = Field(default=0.0, ge=0)
    customer_rating: float = Field(default=0.0, ge=0)
    images: List[ImageRef] = Field(
        default_factory=list,
        description="Image URLs or {\"url\": ...} objects",
    )


class ProductUpdate(BaseModel):
    """Editable product fields; omitted fields are left unchanged."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[float] = Field(default=None, ge=0)
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    rating_from_manufacturer: Optional[float] = Field(default=None, ge=0)


class ProductDeleteRequest(BaseModel):
    id: Optional[str] = None


class DiscountUpdate(BaseModel):
    discount: float = Field(..., ge=0, le=100)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    description: str
    category: str
    subcategories: List[str]
    colors: List[str]
    price: float
    discount: float
    rating_from_manufacturer: float
    customer_rating: float
    images: List[ImageRef]
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, product: Product) -> "ProductResponse":
        return cls(**product.to_dict())


class ProductCreatedResponse(BaseModel):
    message: str
    product: ProductResponse


class ProductBulkCreatedResponse(BaseModel):
    message: str
    count: int


class ProductMessageResponse(BaseModel):
    message: str
    product: ProductResponse


class CartItem(BaseModel):
    """Product as placed in the shopping cart."""
    id: str
    name: str
    price: float
    image: str
    quantity: int = 1
    discount: float = 0.0
