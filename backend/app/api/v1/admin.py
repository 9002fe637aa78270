"""
Admin API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from app.api.deps import require_admin
from app.core.database import get_database
from app.models.dashboard import AdminDashboard
from app.services.reporting_service import ReportingService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

async def get_reporting_service(db=Depends(get_database)) -> ReportingService:
    return ReportingService(db)

@router.get("/dashboard-stats", response_model=AdminDashboard)
async def admin_dashboard_stats(
    admin: dict = Depends(require_admin),
    reporting: ReportingService = Depends(get_reporting_service)
):
    """
    Platform-wide dashboard

    Users per role, loan and application totals, amounts requested and
    approved, latest activity and the most applied-for loans with their
    monthly application counts.
    """
    try:
        return await reporting.admin_dashboard()

    except Exception as e:
        logger.error(f"Failed to build admin dashboard: {e}")
        raise HTTPException(status_code=500, detail="Failed to load dashboard")
