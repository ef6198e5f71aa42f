"""
Data access for the store.

Each repository wraps one AsyncSession and flushes but never commits; the
caller (``get_db`` or a background worker) owns the transaction.
"""

from app.repositories.analytics import AnalysisJobRepository, AnalyticsRepository, InsightRepository
from app.repositories.business_settings import BusinessSettingsRepository
from app.repositories.discount import DiscountRepository
from app.repositories.order import OrderRepository
from app.repositories.product import ProductRepository
from app.repositories.review import ReviewRepository
from app.repositories.user import UserRepository

__all__ = [
    "AnalysisJobRepository",
    "AnalyticsRepository",
    "BusinessSettingsRepository",
    "DiscountRepository",
    "InsightRepository",
    "OrderRepository",
    "ProductRepository",
    "ReviewRepository",
    "UserRepository",
]
