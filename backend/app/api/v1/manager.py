"""
Manager API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
from app.api.deps import require_manager
from app.api.v1.admin import get_reporting_service
from app.core.database import get_database
from app.models.application import Application, ApplicationStatus
from app.models.dashboard import ManagerDashboard
from app.models.loan import Loan, owned_by_filter
from app.services.reporting_service import ReportingService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/dashboard-stats", response_model=ManagerDashboard)
async def manager_dashboard_stats(
    manager: dict = Depends(require_manager),
    reporting: ReportingService = Depends(get_reporting_service)
):
    """Dashboard restricted to the caller's own loans"""
    try:
        return await reporting.manager_dashboard(manager["email"])

    except Exception as e:
        logger.error(f"Failed to build manager dashboard: {e}")
        raise HTTPException(status_code=500, detail="Failed to load dashboard")

@router.get("/loans", response_model=List[Loan])
async def list_manager_loans(manager: dict = Depends(require_manager), db=Depends(get_database)):
    """Get the loans the caller owns, newest first"""
    try:
        cursor = db.loans.find(owned_by_filter(manager["email"]), {"_id": 0}).sort("createdAt", -1)
        loans = await cursor.to_list(length=None)
        return [Loan.model_validate(loan) for loan in loans]

    except Exception as e:
        logger.error(f"Failed to list manager loans: {e}")
        raise HTTPException(status_code=500, detail="Failed to list loans")

@router.get("/applications", response_model=List[Application])
async def list_manager_applications(
    status: Optional[ApplicationStatus] = None,
    manager: dict = Depends(require_manager),
    db=Depends(get_database)
):
    """Get applications submitted for the caller's loans"""
    try:
        loans = await db.loans.find(owned_by_filter(manager["email"]), {"_id": 0, "loanId": 1}).to_list(length=None)
        query = {"loanId": {"$in": [loan["loanId"] for loan in loans if loan.get("loanId")]}}
        if status:
            query["status"] = status.value

        cursor = db.applications.find(query, {"_id": 0}).sort("createdAt", -1)
        applications = await cursor.to_list(length=None)
        return [Application.model_validate(app) for app in applications]

    except Exception as e:
        logger.error(f"Failed to list manager applications: {e}")
        raise HTTPException(status_code=500, detail="Failed to list applications")
