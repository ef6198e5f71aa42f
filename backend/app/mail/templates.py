"""
HTML templates for transactional email.

All interpolated values are HTML-escaped; amounts are rendered in Ghana
cedis with two decimals.
"""

from html import escape
from typing import Any, Iterable, Mapping

CURRENCY_SYMBOL = "GH₵"


def format_amount(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def format_line_item(item: Mapping[str, Any]) -> str:
    """
    Render one order line as ``name x qty = GH₵<price * qty>``.

    Example:
        >>> format_line_item({"name": "Kente", "quantity": 2, "price": 150})
        'Kente x 2 = GH₵300.00'
    """
    quantity = int(item.get("quantity") or 1)
    price = float(item.get("price") or 0)
    return f"{escape(str(item['name']))} x {quantity} = {format_amount(price * quantity)}"


def order_confirmation_template(
    name: str,
    order_id: str,
    total: float,
    items: Iterable[Mapping[str, Any]],
) -> str:
    items_html = "".join(f"\n        <li>{format_line_item(item)}</li>" for item in items)

    return f"""
    <div style="font-family: sans-serif; line-height: 1.5; color: #333;">
      <h1>Hi {escape(name)},</h1>
      <p>Thank you for your order. Your order ID is <strong>{escape(order_id)}</strong>.</p>

      <h3>Order Summary:</h3>
      <ul>{items_html}
      </ul>

      <p><strong>Total:</strong> {format_amount(total)}</p>
      <p>We'll contact you shortly to confirm delivery details.</p>

      <p>Best regards,<br />Your Store Team</p>
    </div>
    """


def verification_email_template(url: str, name: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ background-color: #ffffff; font-family: -apple-system,BlinkMacSystemFont,"Segoe UI",Roboto,sans-serif; }}
        .container {{ margin: 0 auto; padding: 20px 0 48px; max-width: 560px; }}
        .heading {{ font-size: 24px; line-height: 1.3; font-weight: 400; color: #484848; padding: 17px 0 0; }}
        .paragraph {{ margin: 0 0 15px; font-size: 15px; line-height: 1.4; color: #3c4149; }}
        .hr {{ margin: 42px 0 26px; border-top: 1px solid #dfe1e4; }}
        .link {{ font-size: 14px; color: #b4becc; text-decoration: none; }}
    </style>
</head>
<body>
    <div class="container">
        <h1 class="heading">Hi {escape(name)}!</h1>
        <p class="paragraph">
            Thank you for signing up with J'S Ashanti! Please click the link below to verify your
            email address and complete your registration.
        </p>
        <hr class="hr" />
        <a href="{escape(url, quote=True)}" class="link">
            Click here to verify your email address
        </a>
    </div>
</body>
</html>
"""
