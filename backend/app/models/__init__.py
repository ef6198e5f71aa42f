"""
SQLAlchemy ORM models for the J's Ashanti Store API.

This module exports all database models and the declarative base.
Import models from this module to ensure they're registered with SQLAlchemy.
"""

from app.models.base import Base, TimestampMixin, UUIDMixin, ModelMixin
from app.models.user import User
from app.models.product import Product
from app.models.review import Review
from app.models.business_settings import BusinessSettings
from app.models.discount import DiscountCampaign
from app.models.order import Order
from app.models.analytics import (
    AnalyticsEvent,
    Batch,
    AnalysisJob,
    Insight,
    DeadLetterJob,
)

# Export all models
__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "ModelMixin",
    # Models
    "User",
    "Product",
    "Review",
    "BusinessSettings",
    "DiscountCampaign",
    "Order",
    "AnalyticsEvent",
    "Batch",
    "AnalysisJob",
    "Insight",
    "DeadLetterJob",
]
