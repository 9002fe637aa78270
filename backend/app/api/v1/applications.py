"""
Loan Application API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
import uuid
from datetime import datetime, timezone
from pymongo import ReturnDocument
from app.api.deps import Claim, authenticate, require_admin, require_staff
from app.models.application import (
    Application, ApplicationCreate, ApplicationStatus, ApplicationStatusUpdate, FeeStatus
)
from app.models.loan import is_owned_by
from app.models.user import Role
from app.services.reporting_service import parse_amount
from app.core.database import get_database
from app.core.errors import FORBIDDEN_MESSAGE
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=Application, status_code=201)
async def create_application(
    application_data: ApplicationCreate,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database)
):
    """
    Apply for a loan

    - **loanId**: Loan to apply for (required)
    - **loanAmount**: Requested amount (required, within the loan's limit)
    """
    try:
        applicant = await db.users.find_one({"email": claim.email}, {"_id": 0, "role": 1})
        if applicant and applicant.get("role") == Role.SUSPENDED.value:
            raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)

        # The loan must exist now; nothing keeps the reference valid later
        loan = await db.loans.find_one({"loanId": application_data.loan_id}, {"_id": 0})
        if not loan:
            raise HTTPException(status_code=404, detail="Loan not found")

        limit = parse_amount(loan.get("maxLoanLimit"))
        if limit and application_data.loan_amount > limit:
            raise HTTPException(status_code=422, detail=f"loanAmount exceeds the loan limit of {limit:g}")

        application = Application(
            application_id=f"app_{uuid.uuid4().hex[:12]}",
            loan_title=loan.get("loanTitle"),
            interest_rate=parse_amount(loan["interestRate"]) if loan.get("interestRate") is not None else None,
            email=claim.email,
            status=ApplicationStatus.PENDING,
            application_fee_status=FeeStatus.UNPAID,
            created_at=datetime.now(timezone.utc),
            **application_data.model_dump()
        )

        await db.applications.insert_one(application.model_dump(by_alias=True))

        logger.info(f"Application created: {application.application_id} for loan {application.loan_id} by {claim.email}")

        return application

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create application: {e}")
        raise HTTPException(status_code=500, detail="Failed to create application")

@router.get("/mine", response_model=List[Application])
async def list_my_applications(claim: Claim = Depends(authenticate), db=Depends(get_database)):
    """Get the caller's applications, newest first"""
    try:
        cursor = db.applications.find({"email": claim.email}, {"_id": 0}).sort("createdAt", -1)
        applications = await cursor.to_list(length=None)
        return [Application.model_validate(app) for app in applications]

    except Exception as e:
        logger.error(f"Failed to list applications: {e}")
        raise HTTPException(status_code=500, detail="Failed to list applications")

@router.get("/", response_model=List[Application])
async def list_applications(
    status: Optional[ApplicationStatus] = None,
    limit: int = 100,
    skip: int = 0,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """Get all applications with an optional status filter"""
    try:
        query = {}
        if status:
            query["status"] = status.value

        cursor = db.applications.find(query, {"_id": 0}).sort("createdAt", -1).skip(skip).limit(limit)
        applications = await cursor.to_list(length=limit)

        return [Application.model_validate(app) for app in applications]

    except Exception as e:
        logger.error(f"Failed to list applications: {e}")
        raise HTTPException(status_code=500, detail="Failed to list applications")

@router.get("/{application_id}", response_model=Application)
async def get_application(
    application_id: str,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database)
):
    """Get an application; visible to the applicant, admins and the loan's manager"""
    try:
        application = await db.applications.find_one({"applicationId": application_id}, {"_id": 0})
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")

        if application.get("email") != claim.email:
            caller = await db.users.find_one({"email": claim.email}, {"_id": 0, "role": 1}) or {}
            role = caller.get("role")
            allowed = role == Role.ADMIN.value
            if role == Role.MANAGER.value:
                loan = await db.loans.find_one({"loanId": application.get("loanId")}, {"_id": 0})
                allowed = bool(loan) and is_owned_by(loan, claim.email)
            if not allowed:
                raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)

        return Application.model_validate(application)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get application: {e}")
        raise HTTPException(status_code=500, detail="Failed to get application")

@router.patch("/{application_id}/status", response_model=Application)
async def update_application_status(
    application_id: str,
    status_data: ApplicationStatusUpdate,
    current_user: dict = Depends(require_staff),
    db=Depends(get_database)
):
    """Approve or reject an application; managers only decide on their own loans"""
    try:
        application = await db.applications.find_one({"applicationId": application_id}, {"_id": 0})
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")

        if current_user.get("role") == Role.MANAGER.value:
            loan = await db.loans.find_one({"loanId": application.get("loanId")}, {"_id": 0})
            if not loan or not is_owned_by(loan, current_user.get("email")):
                raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)

        updated = await db.applications.find_one_and_update(
            {"applicationId": application_id},
            {"$set": {
                "status": status_data.status.value,
                "statusUpdatedAt": datetime.now(timezone.utc)
            }},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )

        logger.info(f"Application status updated: {application_id} -> {status_data.status.value} by {current_user.get('email')}")

        return Application.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update application status: {e}")
        raise HTTPException(status_code=500, detail="Failed to update application status")

@router.delete("/{application_id}")
async def cancel_application(
    application_id: str,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database)
):
    """Cancel one of the caller's own pending applications"""
    try:
        application = await db.applications.find_one({"applicationId": application_id}, {"_id": 0})
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")
        if application.get("email") != claim.email:
            raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)
        if application.get("status") != ApplicationStatus.PENDING.value:
            raise HTTPException(status_code=409, detail="Only pending applications can be cancelled")

        result = await db.applications.delete_one(
            {"applicationId": application_id, "status": ApplicationStatus.PENDING.value}
        )
        if result.deleted_count == 0:
            raise HTTPException(status_code=409, detail="Only pending applications can be cancelled")

        logger.info(f"Application cancelled: {application_id} by {claim.email}")

        return {"message": f"Application {application_id} cancelled successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to cancel application: {e}")
        raise HTTPException(status_code=500, detail="Failed to cancel application")
