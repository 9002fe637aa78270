"""
Payment API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List
from app.api.deps import Claim, authenticate, require_admin
from app.core.database import get_database
from app.core.errors import FORBIDDEN_MESSAGE
from app.models.application import FeeStatus
from app.models.payment import CheckoutSessionCreate, CheckoutSessionResponse, Payment, PaymentConfirmation
from app.services.payment_service import (
    PaymentNotCompleted, PaymentProviderError, PaymentService, get_checkout_provider
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

async def get_payment_service(db=Depends(get_database), provider=Depends(get_checkout_provider)) -> PaymentService:
    return PaymentService(db, provider)

@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    session_data: CheckoutSessionCreate,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database),
    payments: PaymentService = Depends(get_payment_service)
):
    """
    Start paying the application fee

    - **applicationId**: One of the caller's unpaid applications
    """
    try:
        application = await db.applications.find_one({"applicationId": session_data.application_id}, {"_id": 0})
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")
        if application.get("email") != claim.email:
            raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)
        if application.get("applicationFeeStatus") == FeeStatus.PAID.value:
            raise HTTPException(status_code=409, detail="Application fee already paid")

        session = await payments.create_checkout_session(application, claim.email)
        return CheckoutSessionResponse(url=session.url, session_id=session.id)

    except HTTPException:
        raise
    except PaymentProviderError as e:
        raise HTTPException(status_code=502, detail="Payment provider unavailable") from e
    except Exception as e:
        logger.error(f"Failed to create checkout session: {e}")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")

@router.patch("/confirm", response_model=PaymentConfirmation)
async def confirm_payment(
    session_id: str = Query(..., min_length=1),
    claim: Claim = Depends(authenticate),
    payments: PaymentService = Depends(get_payment_service)
):
    """
    Record a completed checkout session

    Safe to call repeatedly: later calls report `alreadyExists` with the
    payment recorded the first time.
    """
    try:
        return await payments.confirm_payment(session_id)

    except PaymentNotCompleted as e:
        raise HTTPException(status_code=400, detail="Payment not completed") from e
    except PaymentProviderError as e:
        raise HTTPException(status_code=502, detail="Payment provider unavailable") from e
    except Exception as e:
        logger.error(f"Failed to confirm payment {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to confirm payment")

@router.get("/mine", response_model=List[Payment])
async def list_my_payments(claim: Claim = Depends(authenticate), db=Depends(get_database)):
    """Get the caller's payments, newest first"""
    try:
        cursor = db.payments.find({"customerEmail": claim.email}, {"_id": 0}).sort("paidAt", -1)
        payments = await cursor.to_list(length=None)
        return [Payment.model_validate(payment) for payment in payments]

    except Exception as e:
        logger.error(f"Failed to list payments: {e}")
        raise HTTPException(status_code=500, detail="Failed to list payments")

@router.get("/", response_model=List[Payment])
async def list_payments(
    limit: int = 100,
    skip: int = 0,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """Get all payments, newest first"""
    try:
        cursor = db.payments.find({}, {"_id": 0}).sort("paidAt", -1).skip(skip).limit(limit)
        payments = await cursor.to_list(length=limit)
        return [Payment.model_validate(payment) for payment in payments]

    except Exception as e:
        logger.error(f"Failed to list payments: {e}")
        raise HTTPException(status_code=500, detail="Failed to list payments")
