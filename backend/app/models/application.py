"""
Loan Application Models
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Union
from datetime import datetime, timezone
from enum import Enum

class ApplicationStatus(str, Enum):
    """Application status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class FeeStatus(str, Enum):
    """Application fee payment status"""
    UNPAID = "unpaid"
    PAID = "paid"

class Application(BaseModel):
    """Loan application submitted by a borrower"""
    application_id: str = Field(..., description="Unique application identifier")
    loan_id: str = Field(..., description="Loan the application is for")
    loan_title: Optional[str] = Field(None, description="Loan title at the time of applying")
    interest_rate: Optional[float] = None
    email: str = Field(..., description="Applicant email")
    # Legacy records may hold the amount as text
    loan_amount: Optional[Union[float, str]] = Field(None, description="Requested amount")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    contact_number: Optional[str] = None
    national_id: Optional[str] = None
    income_source: Optional[str] = None
    monthly_income: Optional[Union[float, str]] = None
    reason: Optional[str] = None
    address: Optional[str] = None
    extra_notes: Optional[str] = None
    status: ApplicationStatus = Field(ApplicationStatus.PENDING, description="Application status")
    application_fee_status: FeeStatus = Field(FeeStatus.UNPAID, description="Fee payment status")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status_updated_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "applicationId": "app_123456abcdef",
                "loanId": "loan_8d1f0b2c9a7e",
                "loanTitle": "Small Business Starter",
                "email": "borrower@example.com",
                "loanAmount": 1500,
                "status": "pending",
                "applicationFeeStatus": "unpaid"
            }
        }
        from_attributes = True

class ApplicationCreate(BaseModel):
    """Application creation request"""
    loan_id: str
    loan_amount: float = Field(..., gt=0)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    contact_number: Optional[str] = None
    national_id: Optional[str] = None
    income_source: Optional[str] = None
    monthly_income: Optional[float] = None
    reason: Optional[str] = None
    address: Optional[str] = None
    extra_notes: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
