"""
Checkout endpoint.
"""

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, status

from app.api.dependencies import DatabaseSession
from app.repositories.order import OrderRepository
from app.schemas.order import CheckoutRequest, CheckoutResponse
from app.services.email import (
    EmailConfigurationError,
    EmailDeliveryError,
    EmailService,
    get_email_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_200_OK)
async def checkout(
    payload: CheckoutRequest,
    db: DatabaseSession,
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> CheckoutResponse:
    """
    Place an order and email a confirmation.

    The order is stored before the email is sent; a delivery failure is
    logged and does not fail the checkout.

    Example:
        POST /api/checkout
        {
            "fullName": "Ama Mensah",
            "email": "ama@example.com",
            "phone": "+233201234567",
            "address": "12 Adum Road, Kumasi",
            "cartItems": [{"id": "...", "name": "Kente Stole", "price": 150, "quantity": 2}],
            "total": 300
        }

        Response:
        {"success": true, "orderId": "..."}
    """
    items = [item.model_dump() for item in payload.cart_items]

    order = await OrderRepository(db).create_order(
        customer_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        address=payload.address,
        total_amount=payload.total,
        items=items,
    )
    logger.info("Order created", extra={"order_id": order.id})

    try:
        await email_service.send_order_confirmation(
            name=payload.full_name,
            email=payload.email,
            order_id=order.id,
            total=payload.total,
            items=items,
        )
    except (EmailConfigurationError, EmailDeliveryError, httpx.HTTPError) as e:
        logger.error(
            f"Failed to send order confirmation: {e}",
            extra={"order_id": order.id},
        )

    return CheckoutResponse(success=True, order_id=order.id)
