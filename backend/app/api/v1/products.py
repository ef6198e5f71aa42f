"""
Catalog endpoints.

Public reads (listing, search, detail, cart shape) and dashboard writes
guarded by ``Dashboard`` permissions.
"""

import logging
from typing import Annotated, List, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import DatabaseSession, require_permission
from app.core.permissions import DASHBOARD
from app.core.security import User
from app.repositories.product import ProductRepository, SlugConflictError
from app.schemas.product import (
    CartItem,
    DiscountUpdate,
    ProductBulkCreatedResponse,
    ProductCreate,
    ProductCreatedResponse,
    ProductDeleteRequest,
    ProductMessageResponse,
    ProductResponse,
    ProductUpdate,
)
from app.services.cart import format_product_for_cart
from app.services.search import search_products

logger = logging.getLogger(__name__)

router = APIRouter()

CanCreate = Annotated[User, Depends(require_permission(DASHBOARD, "create"))]
CanUpdate = Annotated[User, Depends(require_permission(DASHBOARD, "update"))]
CanDelete = Annotated[User, Depends(require_permission(DASHBOARD, "delete"))]


def _not_found(slug: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Product '{slug}' not found",
    )


@router.get("/products", response_model=List[ProductResponse])
async def list_products(
    db: DatabaseSession,
    category: Optional[str] = Query(default=None, description="Only products in this category"),
) -> List[ProductResponse]:
    try:
        products = await ProductRepository(db).list_products(category=category)
    except SQLAlchemyError:
        logger.error("Failed to fetch products", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch products",
        )
    return [ProductResponse.from_model(p) for p in products]


@router.get("/products/search", response_model=List[ProductResponse])
async def search(
    db: DatabaseSession,
    query: str = Query(default="", description="Search text"),
) -> List[ProductResponse]:
    """
    Fuzzy search over product name and description, best match first.

    An empty query returns an empty list.
    """
    products = await ProductRepository(db).list_products()
    return [ProductResponse.from_model(p) for p in search_products(products, query)]


@router.get("/products/{slug}", response_model=ProductResponse)
async def get_product(slug: str, db: DatabaseSession) -> ProductResponse:
    product = await ProductRepository(db).get_by_slug(slug)
    if product is None:
        raise _not_found(slug)
    return ProductResponse.from_model(product)


@router.get("/products/{slug}/cart-item", response_model=CartItem)
async def get_cart_item(slug: str, db: DatabaseSession) -> CartItem:
    """Product shaped for the cart, with the discount already applied."""
    product = await ProductRepository(db).get_by_slug(slug)
    if product is None:
        raise _not_found(slug)
    return CartItem(**format_product_for_cart(product.to_dict()))


@router.post(
    "/products",
    response_model=Union[ProductCreatedResponse, ProductBulkCreatedResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_products(
    payload: Annotated[Union[List[ProductCreate], ProductCreate], Body()],
    db: DatabaseSession,
    user: CanCreate,
) -> Union[ProductCreatedResponse, ProductBulkCreatedResponse]:
    """
    Create one product, or many when the body is an array.

    Raises:
        HTTPException 400: Empty array or a name without letters/digits
        HTTPException 409: A slug already exists
    """
    repo = ProductRepository(db)

    if isinstance(payload, list):
        if not payload:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No products provided",
            )
        try:
            created = await repo.create_products([item.model_dump() for item in payload])
        except SlugConflictError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        logger.info(f"Bulk created {len(created)} products", extra={"user_id": user.id})
        return ProductBulkCreatedResponse(
            message="Products created successfully",
            count=len(created),
        )

    try:
        product = await repo.create_product(payload.model_dump())
    except SlugConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"Created product {product.slug}", extra={"user_id": user.id})
    return ProductCreatedResponse(
        message="Product created successfully",
        product=ProductResponse.from_model(product),
    )


@router.put("/products/{slug}", response_model=ProductResponse)
async def update_product(
    slug: str,
    payload: ProductUpdate,
    db: DatabaseSession,
    user: CanUpdate,
) -> ProductResponse:
    product = await ProductRepository(db).update_product(
        slug, payload.model_dump(exclude_unset=True)
    )
    if product is None:
        raise _not_found(slug)
    return ProductResponse.from_model(product)


@router.delete("/products", response_model=ProductMessageResponse)
async def delete_product(
    db: DatabaseSession,
    user: CanDelete,
    payload: Annotated[Optional[ProductDeleteRequest], Body()] = None,
) -> ProductMessageResponse:
    """
    Delete a product (and its reviews) by id.

    Raises:
        HTTPException 400: No id in the body
        HTTPException 404: Unknown id
    """
    if payload is None or not payload.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Product id is required",
        )

    product = await ProductRepository(db).delete_product(payload.id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    logger.info(f"Deleted product {product.slug}", extra={"user_id": user.id})
    return ProductMessageResponse(
        message="Product deleted successfully",
        product=ProductResponse.from_model(product),
    )


@router.patch("/products/discount/{slug}", response_model=ProductResponse)
async def set_product_discount(
    slug: str,
    payload: DiscountUpdate,
    db: DatabaseSession,
    user: CanUpdate,
) -> ProductResponse:
    product = await ProductRepository(db).set_discount(slug, payload.discount)
    if product is None:
        raise _not_found(slug)
    return ProductResponse.from_model(product)
