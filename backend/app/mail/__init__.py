"""
HTML email templates.
"""

from app.mail.templates import order_confirmation_template, verification_email_template

__all__ = ["order_confirmation_template", "verification_email_template"]
