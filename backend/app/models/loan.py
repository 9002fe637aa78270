"""
Loan Models
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime, timezone

UNCATEGORIZED = "Uncategorized"

class Loan(BaseModel):
    """Loan product published by a manager"""
    loan_id: str = Field(..., description="Unique loan identifier")
    loan_title: str = Field(..., description="Loan title")
    category: Optional[str] = Field(None, description="Loan category")
    description: Optional[str] = None
    interest_rate: Optional[float] = Field(None, description="Interest rate in percent")
    max_loan_limit: Optional[float] = Field(None, description="Maximum amount a borrower may request")
    required_documents: List[str] = Field(default_factory=list)
    emi_plans: List[str] = Field(default_factory=list)
    image: Optional[str] = None
    show_on_home: bool = Field(False, description="Featured on the home page")
    # Three ownership fields exist for historical reasons; see is_owned_by()
    manager_email: Optional[str] = None
    email: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "loanId": "loan_8d1f0b2c9a7e",
                "loanTitle": "Small Business Starter",
                "category": "Business",
                "interestRate": 7.5,
                "maxLoanLimit": 5000,
                "showOnHome": True,
                "managerEmail": "manager@example.com"
            }
        }
        from_attributes = True

class LoanCreate(BaseModel):
    """Loan creation request"""
    loan_title: str
    category: Optional[str] = None
    description: Optional[str] = None
    interest_rate: Optional[float] = Field(None, ge=0)
    max_loan_limit: Optional[float] = Field(None, ge=0)
    required_documents: List[str] = Field(default_factory=list)
    emi_plans: List[str] = Field(default_factory=list)
    image: Optional[str] = None
    show_on_home: bool = False

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class LoanUpdate(BaseModel):
    """Partial loan update"""
    loan_title: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    interest_rate: Optional[float] = Field(None, ge=0)
    max_loan_limit: Optional[float] = Field(None, ge=0)
    required_documents: Optional[List[str]] = None
    emi_plans: Optional[List[str]] = None
    image: Optional[str] = None
    show_on_home: Optional[bool] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class ShowOnHomeUpdate(BaseModel):
    show_on_home: bool

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def is_owned_by(loan: dict, manager_email: str) -> bool:
    """
    True when any of the legacy ownership fields names the manager.

    Loans have been written with ``managerEmail``, ``email`` or ``createdBy``
    as the creator reference; a loan is owned if *any* of them matches.
    """
    if not manager_email:
        return False
    return any(loan.get(field) == manager_email for field in ("managerEmail", "email", "createdBy"))


def owned_by_filter(manager_email: str) -> dict:
    """MongoDB filter matching the same loans as is_owned_by()"""
    return {
        "$or": [
            {"managerEmail": manager_email},
            {"email": manager_email},
            {"createdBy": manager_email},
        ]
    }
