"""
Pydantic schemas for checkout.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    image: Optional[str] = None


class CheckoutRequest(BaseModel):
    """
    Checkout form submitted by the storefront.

    Keys are camelCase to match the storefront payload.
    """
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., min_length=1, alias="fullName")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    cart_items: List[CheckoutItem] = Field(..., min_length=1, alias="cartItems")
    total: float = Field(..., ge=0)


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    order_id: str = Field(..., serialization_alias="orderId")
