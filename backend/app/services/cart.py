"""
Cart formatting for catalog products.
"""

from typing import Any, Mapping, Optional

FALLBACK_IMAGE = "/fallback-image.webp"


def discounted_price(price: float, discount: Optional[float]) -> float:
    """
    Apply a percentage discount.

    Example:
        >>> discounted_price(200.0, 25)
        150.0
    """
    if discount and discount > 0:
        return price - price * discount / 100
    return price


def _first_image(images: Any) -> Optional[str]:
    if not images:
        return None
    first = images[0]
    if isinstance(first, str):
        return first or None
    if isinstance(first, Mapping):
        return first.get("url") or None
    return None


def format_product_for_cart(product: Mapping[str, Any]) -> dict[str, Any]:
    """
    Shape a product for the shopping cart.

    Args:
        product: Product fields (``id``, ``name``, ``price``, ``discount``,
            and optionally ``image`` and ``images``)

    Returns:
        {id, name, price, image, quantity, discount} where ``price`` already
        has the discount applied and ``image`` falls back to the first entry
        of ``images`` and then to the placeholder image.
    """
    discount = product.get("discount") or 0
    image = product.get("image") or _first_image(product.get("images")) or FALLBACK_IMAGE

    return {
        "id": product["id"],
        "name": product["name"],
        "price": discounted_price(float(product.get("price") or 0), discount),
        "image": image,
        "quantity": 1,
        "discount": discount,
    }
