"""
Payment Models
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime, timezone

class Payment(BaseModel):
    """Confirmed application-fee payment"""
    transaction_id: str = Field(..., description="Provider transaction id (idempotency key)")
    application_id: Optional[str] = None
    loan_id: Optional[str] = None
    amount: float = Field(..., description="Amount in major currency units")
    currency: str = "usd"
    customer_email: Optional[str] = None
    paid_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class CheckoutSessionCreate(BaseModel):
    application_id: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class CheckoutSessionResponse(BaseModel):
    url: str
    session_id: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class PaymentConfirmation(BaseModel):
    """Result of confirming a checkout session"""
    already_exists: bool = False
    payment: Payment
    message: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
