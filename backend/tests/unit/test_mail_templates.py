"""Tests for transactional email templates."""

from app.mail.templates import (
    format_amount,
    format_line_item,
    order_confirmation_template,
    verification_email_template,
)


def test_amounts_use_cedi_with_two_decimals():
    assert format_amount(300) == "GH₵300.00"
    assert format_amount(12.5) == "GH₵12.50"


def test_line_item_multiplies_quantity():
    assert format_line_item({"name": "Kente", "quantity": 2, "price": 150}) == "Kente x 2 = GH₵300.00"


def test_order_confirmation_lists_items_and_total():
    html = order_confirmation_template(
        name="Ama",
        order_id="order-123",
        total=450,
        items=[
            {"name": "Kente", "quantity": 2, "price": 150},
            {"name": "Shea Butter", "quantity": 1, "price": 150},
        ],
    )

    assert "Hi Ama," in html
    assert "<strong>order-123</strong>" in html
    assert "<li>Kente x 2 = GH₵300.00</li>" in html
    assert "<li>Shea Butter x 1 = GH₵150.00</li>" in html
    assert "GH₵450.00" in html


def test_order_confirmation_escapes_customer_input():
    html = order_confirmation_template(
        name="<script>alert(1)</script>",
        order_id="o1",
        total=0,
        items=[{"name": "<b>x</b>", "quantity": 1, "price": 0}],
    )

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "&lt;b&gt;x&lt;/b&gt;" in html


def test_verification_email_contains_link():
    url = "http://test/api/auth/verify-email?token=abc&x=1"
    html = verification_email_template(url=url, name="Kofi")

    assert "Hi Kofi!" in html
    assert 'href="http://test/api/auth/verify-email?token=abc&amp;x=1"' in html
