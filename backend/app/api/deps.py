"""
Access Gate

Composable request checks used as FastAPI dependencies. ``authenticate``
verifies the bearer token; ``require_role`` re-reads the caller's user record
on every request and checks its role against an allowed set. Authentication
always runs first, so a request without credentials never reaches the store.
"""
from dataclasses import dataclass, field
from typing import Optional, Iterable, FrozenSet

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.auth import verify_token
from app.core.database import get_database
from app.core.errors import FORBIDDEN_MESSAGE, UNAUTHORIZED_MESSAGE
from app.models.user import Role
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class Claim:
    """Verified identity of the caller"""
    email: str
    payload: dict = field(default_factory=dict)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=UNAUTHORIZED_MESSAGE,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_MESSAGE)


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Claim:
    """Require ``Authorization: Bearer <token>`` and verify it"""
    # HTTPBearer yields None for a missing header or another scheme
    if credentials is None:
        raise _unauthorized()

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    email = payload["email"]
    request.state.email = email
    return Claim(email=email, payload=payload)


async def check_role(db, email: str, allowed_roles: Iterable[Role]) -> dict:
    """
    Load the user record for ``email`` and require its role to be allowed.

    Returns the user document. Raises 403 when the user is unknown or the
    role is not in ``allowed_roles``; the response does not say which.
    """
    allowed = {Role(role).value for role in allowed_roles}
    user = await db.users.find_one({"email": email}, {"_id": 0})
    if user is None or user.get("role") not in allowed:
        logger.info(f"Role check failed for {email}: requires one of {sorted(allowed)}")
        raise _forbidden()
    return user


def require_role(*allowed_roles: Role):
    """Build a dependency that authenticates and then checks the caller's role"""
    if not allowed_roles:
        raise ValueError("require_role needs at least one role")
    allowed: FrozenSet[Role] = frozenset(allowed_roles)

    async def role_gate(claim: Claim = Depends(authenticate), db=Depends(get_database)) -> dict:
        return await check_role(db, claim.email, allowed)

    return role_gate


require_admin = require_role(Role.ADMIN)
require_manager = require_role(Role.MANAGER)
require_staff = require_role(Role.ADMIN, Role.MANAGER)
