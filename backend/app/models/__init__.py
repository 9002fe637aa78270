from .user import User, Role
from .loan import Loan
from .application import Application, ApplicationStatus, FeeStatus
from .payment import Payment
from .dashboard import AdminDashboard, ManagerDashboard

__all__ = ["User", "Role", "Loan", "Application", "ApplicationStatus", "FeeStatus", "Payment", "AdminDashboard", "ManagerDashboard"]
