"""
FastAPI Backend for SMS Ingestion

Provides REST API endpoints over the ingestion pipeline.
"""

from .main import app

__all__ = ["app"]
