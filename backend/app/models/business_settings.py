"""
Business settings model.

Each save writes a new row; the most recent row is the effective
configuration, so earlier values remain as history.
"""

from sqlalchemy import Column, Float, String, Text

from app.models.base import Base, UUIDMixin, TimestampMixin, ModelMixin, load_json, dump_json


class BusinessSettings(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Store-wide contact and billing settings.

    Attributes:
        business_name: Trading name shown on receipts
        email: Contact email
        phone: Contact phone
        address: Postal address
        currency: ISO currency code (default GHS)
        logo_url: Logo image URL
        tax_rate: Tax rate percentage
        social_links: JSON object mapping network name to URL
    """

    __tablename__ = "business_settings"
    __json_columns__ = {"social_links": {}}

    business_name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(Text, nullable=True)
    currency = Column(String(8), nullable=False, default="GHS")
    logo_url = Column(String, nullable=True)
    tax_rate = Column(Float, nullable=False, default=0.0)
    social_links = Column(Text, nullable=False, default="{}")

    def get_social_links(self) -> dict:
        return load_json(self.social_links, {})

    def set_social_links(self, links: dict) -> None:
        self.social_links = dump_json(links or {})
