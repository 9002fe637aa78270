"""
Script to mint a bearer token for local development

Usage: python scripts/issue_token.py <email> [minutes]

The token is signed with SECRET_KEY, so the API accepts it exactly like one
from the identity provider. Never point this at production secrets.
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import timedelta
from app.core.auth import create_access_token
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def issue_token(email: str, minutes: int = None) -> str:
    expires = timedelta(minutes=minutes) if minutes else None
    token = create_access_token({"sub": email, "email": email}, expires_delta=expires)
    logger.info(f"Issued token for {email}")
    return token

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    lifetime = int(sys.argv[2]) if len(sys.argv) > 2 else None
    print(issue_token(sys.argv[1].strip(), lifetime))
