"""
API Routes Package

Contains all route modules for the SMS ingestion API.
"""

from .sms import router as sms_router
from .categories import router as categories_router
from .transactions import router as transactions_router

__all__ = [
    "sms_router",
    "categories_router",
    "transactions_router",
]
