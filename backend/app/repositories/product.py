"""
Product repository for catalog CRUD and discount operations.

Provides data access for the Product model. Slugs are derived from product
names and must be unique across the catalog.
"""

import re
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class SlugConflictError(ValueError):
    """A product with the derived slug already exists."""

# Fields accepted by update_product()
UPDATABLE_FIELDS = (
    "name",
    "description",
    "category",
    "price",
    "discount",
    "rating_from_manufacturer",
)


def slugify(name: str) -> str:
    """
    Derive a URL slug from a product name.

    Lowercases, collapses runs of non-alphanumerics into "-" and strips
    leading/trailing dashes.

    Example:
        >>> slugify("  Kente Cloth (Gold & Green)! ")
        'kente-cloth-gold-green'
    """
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


class ProductRepository:
    """
    Repository for product data access.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_products(self, category: Optional[str] = None) -> list[Product]:
        """
        Get all products, newest first.

        Args:
            category: Only return products in this category

        Returns:
            List of Product instances
        """
        stmt = select(Product).order_by(Product.created_at.desc())
        if category:
            stmt = stmt.where(Product.category == category)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        stmt = select(Product).where(Product.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        return await self.get_by_slug(slug) is not None

    async def _flush_new(self) -> None:
        # A concurrent insert can take the slug between the check and the flush
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise SlugConflictError("A product with this slug already exists") from e

    def _build(self, data: dict[str, Any]) -> Product:
        product = Product(
            name=data["name"],
            slug=slugify(data.get("slug") or data["name"]),
            description=data.get("description") or "",
            category=data["category"],
            price=data.get("price", 0.0),
            discount=data.get("discount", 0.0),
            rating_from_manufacturer=data.get("rating_from_manufacturer", 0.0),
            customer_rating=data.get("customer_rating", 0.0),
        )
        product.set_subcategories(data.get("subcategories") or [])
        product.set_colors(data.get("colors") or [])
        product.set_images(data.get("images") or [])
        return product

    async def create_product(self, data: dict[str, Any]) -> Product:
        """
        Create a single product.

        Args:
            data: Product fields; ``slug`` is slugified, and derived from ``name``
                when absent

        Returns:
            Created Product instance

        Raises:
            SlugConflictError: If the slug already exists
            ValueError: If the name yields an empty slug
        """
        product = self._build(data)
        if not product.slug:
            raise ValueError("Product name must contain at least one letter or digit")
        if await self.slug_exists(product.slug):
            raise SlugConflictError(f"Product with slug '{product.slug}' already exists")

        self.session.add(product)
        await self._flush_new()
        await self.session.refresh(product)
        return product

    async def create_products(self, items: list[dict[str, Any]]) -> list[Product]:
        """
        Create several products at once.

        The whole batch is rejected if any slug collides with an existing
        product or with another item in the batch.

        Raises:
            SlugConflictError: On the first slug conflict
            ValueError: If a name yields an empty slug
        """
        products = [self._build(item) for item in items]

        seen: set[str] = set()
        for product in products:
            if not product.slug:
                raise ValueError("Product name must contain at least one letter or digit")
            if product.slug in seen or await self.slug_exists(product.slug):
                raise SlugConflictError(f"Product with slug '{product.slug}' already exists")
            seen.add(product.slug)

        self.session.add_all(products)
        await self._flush_new()
        return products

    async def update_product(self, slug: str, changes: dict[str, Any]) -> Optional[Product]:
        """
        Update editable fields of a product.

        Only keys listed in UPDATABLE_FIELDS are applied; None values are
        ignored.

        Returns:
            Updated Product, or None if no product has this slug
        """
        product = await self.get_by_slug(slug)
        if product is None:
            return None

        for field in UPDATABLE_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(product, field, value)

        await self.session.flush()
        await self.session.refresh(product)
        return product

    async def delete_product(self, product_id: str) -> Optional[Product]:
        """
        Delete a product by id; its reviews are removed by cascade.

        Returns:
            The deleted Product, or None if it did not exist
        """
        product = await self.get_by_id(product_id)
        if product is None:
            return None
        await self.session.delete(product)
        await self.session.flush()
        return product

    async def set_discount(self, slug: str, discount: float) -> Optional[Product]:
        product = await self.get_by_slug(slug)
        if product is None:
            return None
        product.discount = discount
        await self.session.flush()
        await self.session.refresh(product)
        return product

    async def apply_discount(
        self,
        percentage: float,
        product_slug: Optional[str] = None,
        category: Optional[str] = None,
    ) -> int:
        """
        Set ``discount`` on every product in a campaign scope.

        Scope is the single product when ``product_slug`` is given, else every
        product in ``category``, else the whole catalog.

        Returns:
            Number of products updated
        """
        stmt = update(Product).values(discount=percentage)
        if product_slug:
            stmt = stmt.where(Product.slug == product_slug)
        elif category:
            stmt = stmt.where(Product.category == category)

        result = await self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0

    async def count_products(self) -> tuple[int, int]:
        """Return (all products, products with a non-zero discount)."""
        stmt = select(
            func.count(Product.id),
            func.count(Product.id).filter(Product.discount > 0),
        )
        total, discounted = (await self.session.execute(stmt)).one()
        return int(total or 0), int(discounted or 0)
