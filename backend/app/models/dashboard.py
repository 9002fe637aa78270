"""
Dashboard Models
"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any

class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True

class MonthlyCount(_CamelModel):
    year: int
    month: int
    label: str = Field(..., description="YYYY-MM")
    count: int = 0

class TopLoan(_CamelModel):
    loan_id: Optional[str] = None
    loan_title: Optional[str] = None
    applications: int = 0
    total_amount: float = 0.0
    monthly: Optional[List[MonthlyCount]] = None

class CategoryCount(_CamelModel):
    category: str
    count: int = 0

class RecentLoan(_CamelModel):
    loan_id: Optional[str] = None
    loan_title: Optional[str] = None
    category: str
    interest_rate: float = 0
    max_loan_limit: float = 0
    show_on_home: bool = False
    created_at: Optional[Any] = None

class AdminDashboard(_CamelModel):
    """Platform-wide dashboard"""
    total_users: int = 0
    users_by_role: Dict[str, int] = Field(default_factory=dict)
    recent_users: List[Dict[str, Any]] = Field(default_factory=list)
    total_loans: int = 0
    total_applications: int = 0
    applications_by_status: Dict[str, int] = Field(default_factory=dict)
    total_application_amount: float = 0.0
    approved_amount: float = 0.0
    recent_applications: List[Dict[str, Any]] = Field(default_factory=list)
    top_loans: List[TopLoan] = Field(default_factory=list)

class ManagerDashboard(_CamelModel):
    """Dashboard scoped to the loans a manager owns"""
    total_loans: int = 0
    total_applications: int = 0
    pending_applications: int = 0
    approved_applications: int = 0
    rejected_applications: int = 0
    total_application_amount: float = 0.0
    applications_by_category: List[CategoryCount] = Field(default_factory=list)
    recent_applications: List[Dict[str, Any]] = Field(default_factory=list)
    recent_loans: List[RecentLoan] = Field(default_factory=list)
    monthly_trend: List[MonthlyCount] = Field(default_factory=list)
    top_loans: List[TopLoan] = Field(default_factory=list)
