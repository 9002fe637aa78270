"""
Payment Service
Stripe Checkout sessions for application fees and idempotent confirmation
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import stripe
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.models.application import FeeStatus
from app.models.payment import Payment, PaymentConfirmation

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """The checkout provider call failed"""


class PaymentNotCompleted(Exception):
    """The checkout session exists but has not been paid"""


@dataclass
class CheckoutSession:
    """Provider-independent view of a checkout session"""
    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    payment_intent: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


class StripeCheckoutProvider:
    """Thin async wrapper over the (blocking) Stripe SDK"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY

    async def create_session(
        self,
        *,
        amount_cents: int,
        currency: str,
        product_name: str,
        customer_email: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                mode="payment",
                line_items=[{
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount_cents,
                        "product_data": {"name": product_name},
                    },
                    "quantity": 1,
                }],
                customer_email=customer_email,
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session creation failed: {e}")
            raise PaymentProviderError(str(e)) from e
        return self._to_session(session)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve, session_id, api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session retrieval failed for {session_id}: {e}")
            raise PaymentProviderError(str(e)) from e
        return self._to_session(session)

    @staticmethod
    def _to_session(session: Any) -> CheckoutSession:
        customer_email = getattr(session, "customer_email", None)
        details = getattr(session, "customer_details", None)
        if not customer_email and details is not None:
            customer_email = getattr(details, "email", None)

        payment_intent = getattr(session, "payment_intent", None)
        if payment_intent is not None and not isinstance(payment_intent, str):
            payment_intent = getattr(payment_intent, "id", None)

        metadata = getattr(session, "metadata", None) or {}
        return CheckoutSession(
            id=session.id,
            url=getattr(session, "url", None),
            payment_status=getattr(session, "payment_status", None),
            amount_total=getattr(session, "amount_total", None),
            currency=getattr(session, "currency", None),
            customer_email=customer_email,
            payment_intent=payment_intent,
            metadata={str(k): str(v) for k, v in dict(metadata).items()},
        )


def get_checkout_provider() -> StripeCheckoutProvider:
    return StripeCheckoutProvider()


class PaymentService:
    """Creates checkout sessions and records confirmed payments"""

    def __init__(self, db, provider):
        self.db = db
        self.provider = provider

    async def create_checkout_session(self, application: dict, customer_email: str) -> CheckoutSession:
        """Open a checkout session for an application's fee"""
        application_id = application["applicationId"]
        client_url = settings.CLIENT_URL.rstrip("/")
        session = await self.provider.create_session(
            amount_cents=settings.APPLICATION_FEE_CENTS,
            currency=settings.PAYMENT_CURRENCY,
            product_name=f"Application fee: {application.get('loanTitle') or application.get('loanId')}",
            customer_email=customer_email,
            metadata={
                "applicationId": application_id,
                "loanId": str(application.get("loanId") or ""),
            },
            success_url=f"{client_url}/dashboard/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{client_url}/dashboard/payment-cancelled?applicationId={application_id}",
        )
        logger.info(f"Checkout session {session.id} created for application {application_id}")
        return session

    async def confirm_payment(self, session_id: str) -> PaymentConfirmation:
        """
        Record the payment for a paid checkout session.

        The unique index on ``transactionId`` makes this idempotent: a
        duplicate insert means the payment was already confirmed, and the
        stored record is returned unchanged. The application fee is marked
        paid on every call, so a retry completes an interrupted first call.
        """
        session = await self.provider.retrieve_session(session_id)
        if session.payment_status != "paid":
            raise PaymentNotCompleted(f"Checkout session {session_id} is {session.payment_status}")

        payment = Payment(
            transaction_id=session.payment_intent or session.id,
            application_id=session.metadata.get("applicationId") or None,
            loan_id=session.metadata.get("loanId") or None,
            amount=(session.amount_total or 0) / 100,
            currency=session.currency or settings.PAYMENT_CURRENCY,
            customer_email=session.customer_email,
        )

        try:
            await self.db.payments.insert_one(payment.model_dump(by_alias=True))
        except DuplicateKeyError:
            existing = Payment.model_validate(
                await self.db.payments.find_one({"transactionId": payment.transaction_id}, {"_id": 0})
            )
            logger.info(f"Payment {payment.transaction_id} already recorded")
            # A retry must still finish marking the fee paid
            await self._mark_fee_paid(existing.application_id)
            return PaymentConfirmation(already_exists=True, payment=existing, message="payment already exists")

        await self._mark_fee_paid(payment.application_id)

        logger.info(f"Payment {payment.transaction_id} recorded for application {payment.application_id}")
        return PaymentConfirmation(already_exists=False, payment=payment, message="payment confirmed")

    async def _mark_fee_paid(self, application_id: Optional[str]) -> None:
        if not application_id:
            return
        await self.db.applications.update_one(
            {"applicationId": application_id},
            {"$set": {"applicationFeeStatus": FeeStatus.PAID.value}},
        )
