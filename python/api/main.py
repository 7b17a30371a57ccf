"""
FastAPI Main Application

Entry point for the SMS ingestion API.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import sms_router, categories_router, transactions_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting SMS Ingestion API...")
    yield
    logger.info("Shutting down SMS Ingestion API...")


app = FastAPI(
    title="SMS Ingestion API",
    description="Classifies financial SMS and imports them as transactions",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sms_router, prefix="/api")
app.include_router(categories_router, prefix="/api")
app.include_router(transactions_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "SMS Ingestion API",
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "endpoints": {
            "classify": "/api/sms/classify",
            "parse": "/api/sms/parse",
            "import": "/api/sms/import",
            "categories": "/api/categories",
            "transactions": "/api/transactions",
            "monthly_summary": "/api/transactions/summary/monthly",
            "category_spending": "/api/transactions/summary/categories",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
