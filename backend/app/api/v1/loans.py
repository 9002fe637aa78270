"""
Loan Management API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
import re
import uuid
from datetime import datetime, timezone
from pymongo import ReturnDocument
from app.api.deps import require_admin, require_manager, require_staff
from app.models.loan import Loan, LoanCreate, LoanUpdate, ShowOnHomeUpdate, is_owned_by, owned_by_filter
from app.models.user import Role
from app.core.config import settings
from app.core.database import get_database
from app.core.errors import FORBIDDEN_MESSAGE
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

async def _get_loan_for_staff(db, loan_id: str, current_user: dict) -> dict:
    """Load a loan that the caller may modify; managers only touch their own"""
    loan = await db.loans.find_one({"loanId": loan_id}, {"_id": 0})
    if not loan:
        raise HTTPException(status_code=404, detail="Loan not found")
    if current_user.get("role") == Role.MANAGER.value and not is_owned_by(loan, current_user.get("email")):
        raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)
    return loan

@router.get("/", response_model=List[Loan])
async def list_loans(
    email: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    skip: int = 0,
    db=Depends(get_database)
):
    """
    Get loans, newest first

    - **email**: Only loans owned by this manager
    - **category**: Exact category
    - **search**: Case-insensitive title search
    """
    try:
        conditions = []
        if email:
            conditions.append(owned_by_filter(email))
        if category:
            conditions.append({"category": category})
        if search:
            conditions.append({"loanTitle": {"$regex": re.escape(search.strip()), "$options": "i"}})

        query = {"$and": conditions} if conditions else {}

        cursor = db.loans.find(query, {"_id": 0}).sort("createdAt", -1).skip(skip).limit(limit)
        loans = await cursor.to_list(length=limit)

        return [Loan.model_validate(loan) for loan in loans]

    except Exception as e:
        logger.error(f"Failed to list loans: {e}")
        raise HTTPException(status_code=500, detail="Failed to list loans")

@router.get("/home", response_model=List[Loan])
async def list_home_loans(db=Depends(get_database)):
    """Get the loans featured on the home page"""
    try:
        limit = settings.HOME_LOANS_LIMIT
        cursor = db.loans.find({"showOnHome": True}, {"_id": 0}).sort("createdAt", -1).limit(limit)
        loans = await cursor.to_list(length=limit)
        return [Loan.model_validate(loan) for loan in loans]

    except Exception as e:
        logger.error(f"Failed to list home loans: {e}")
        raise HTTPException(status_code=500, detail="Failed to list loans")

@router.get("/{loan_id}", response_model=Loan)
async def get_loan(loan_id: str, db=Depends(get_database)):
    """Get loan by ID"""
    try:
        loan = await db.loans.find_one({"loanId": loan_id}, {"_id": 0})

        if not loan:
            raise HTTPException(status_code=404, detail="Loan not found")

        return Loan.model_validate(loan)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get loan: {e}")
        raise HTTPException(status_code=500, detail="Failed to get loan")

@router.post("/", response_model=Loan, status_code=201)
async def create_loan(
    loan_data: LoanCreate,
    manager: dict = Depends(require_manager),
    db=Depends(get_database)
):
    """
    Publish a new loan

    - **loanTitle**: Loan title (required)
    - **category**: Loan category
    - **interestRate**: Interest rate in percent
    - **maxLoanLimit**: Maximum amount a borrower may request
    """
    try:
        title = loan_data.loan_title.strip() if loan_data.loan_title else ""
        if not title:
            raise HTTPException(status_code=422, detail="loanTitle is required and cannot be empty")

        fields = loan_data.model_dump()
        fields["loan_title"] = title
        loan = Loan(
            loan_id=f"loan_{uuid.uuid4().hex[:12]}",
            manager_email=manager["email"],
            created_by=manager["email"],
            created_at=datetime.now(timezone.utc),
            **fields
        )

        await db.loans.insert_one(loan.model_dump(by_alias=True))

        logger.info(f"Loan created: {loan.loan_id} by {manager['email']}")

        return loan

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create loan: {e}")
        raise HTTPException(status_code=500, detail="Failed to create loan")

@router.patch("/{loan_id}", response_model=Loan)
async def update_loan(
    loan_id: str,
    update_data: LoanUpdate,
    current_user: dict = Depends(require_staff),
    db=Depends(get_database)
):
    """Update a loan; managers may only edit loans they own"""
    try:
        await _get_loan_for_staff(db, loan_id, current_user)

        changes = update_data.model_dump(by_alias=True, exclude_unset=True)
        if "loanTitle" in changes and not (changes["loanTitle"] or "").strip():
            raise HTTPException(status_code=422, detail="loanTitle cannot be empty")
        changes["updatedAt"] = datetime.now(timezone.utc)

        updated = await db.loans.find_one_and_update(
            {"loanId": loan_id},
            {"$set": changes},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise HTTPException(status_code=404, detail="Loan not found")

        logger.info(f"Loan updated: {loan_id} by {current_user.get('email')}")
        return Loan.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update loan: {e}")
        raise HTTPException(status_code=500, detail="Failed to update loan")

@router.patch("/{loan_id}/show-on-home", response_model=Loan)
async def set_show_on_home(
    loan_id: str,
    update_data: ShowOnHomeUpdate,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """Feature or unfeature a loan on the home page"""
    try:
        updated = await db.loans.find_one_and_update(
            {"loanId": loan_id},
            {"$set": {"showOnHome": update_data.show_on_home, "updatedAt": datetime.now(timezone.utc)}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise HTTPException(status_code=404, detail="Loan not found")

        logger.info(f"Loan {loan_id} showOnHome={update_data.show_on_home}")
        return Loan.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update loan: {e}")
        raise HTTPException(status_code=500, detail="Failed to update loan")

@router.delete("/{loan_id}")
async def delete_loan(
    loan_id: str,
    current_user: dict = Depends(require_staff),
    db=Depends(get_database)
):
    """Delete a loan; its applications are left in place"""
    try:
        await _get_loan_for_staff(db, loan_id, current_user)

        await db.loans.delete_one({"loanId": loan_id})

        logger.info(f"Loan deleted: {loan_id} by {current_user.get('email')}")

        return {"message": f"Loan {loan_id} deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete loan: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete loan")
