"""
Authentication Utilities
"""
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from app.core.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def verify_token(token: str) -> Optional[dict]:
    """
    Verify a bearer token and return its claims.

    Returns None unless the signature and expiry check out and the token
    carries a non-empty ``email`` claim, the identity every request runs as.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token verification failed: {e}")
        return None

    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        logger.debug("Token rejected: no email claim")
        return None

    payload["email"] = email.strip()
    return payload
