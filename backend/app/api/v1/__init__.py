from fastapi import APIRouter
from . import users, loans, applications, payments, admin, manager

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(loans.router, prefix="/loans", tags=["Loans"])
router.include_router(applications.router, prefix="/applications", tags=["Applications"])
router.include_router(payments.router, prefix="/payments", tags=["Payments"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(manager.router, prefix="/manager", tags=["Manager"])
