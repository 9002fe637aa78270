"""
Health Check API Endpoints
Separated from root endpoint for better organization
"""
from fastapi import APIRouter, Depends
from app.core.config import settings
from app.core.database import get_database
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/")
async def health_check(db=Depends(get_database)):
    """
    Detailed health check endpoint

    Returns:
    - status: Service health status
    - database: Database connection status
    - payments: Whether a Stripe key is configured
    """
    try:
        await db.users.find_one({}, {"_id": 1})
        database_status = "connected"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        database_status = "disconnected"

    return {
        "status": "healthy",
        "database": database_status,
        "payments": "configured" if settings.STRIPE_SECRET_KEY else "not_configured",
        "service": "Micro Loan Platform",
        "version": "1.0.0"
    }

@router.get("/ping")
async def ping():
    """
    Simple ping endpoint for quick connectivity check
    """
    return {
        "status": "ok",
        "message": "pong"
    }
