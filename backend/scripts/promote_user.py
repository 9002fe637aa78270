"""
Script to grant a role to a user directly in MongoDB

Usage: python scripts/promote_user.py <email> [admin|manager|user]

Bootstraps the first admin, who can then manage roles through the API.
The user record is created if the person has never signed in.
"""
import sys
import os

# Add parent directory to path BEFORE other imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import asyncio
import uuid
from motor.motor_asyncio import AsyncIOMotorClient
from app.core.config import settings
from app.models.user import Role
from datetime import datetime, timezone
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def promote_user(email: str, role: Role):
    """Set the user's role, creating the record when missing"""
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    try:
        db = client[settings.MONGODB_DB_NAME]
        now = datetime.now(timezone.utc)

        result = await db.users.update_one(
            {"email": email},
            {
                "$set": {"role": role.value, "updatedAt": now},
                "$unset": {"applyFor": "", "suspendReason": "", "suspendFeedback": ""},
                "$setOnInsert": {"userId": f"user_{uuid.uuid4().hex[:12]}", "createdAt": now}
            },
            upsert=True
        )

        if result.upserted_id:
            logger.info(f"Created {email} with role {role.value}")
        else:
            logger.info(f"Updated {email} to role {role.value}")

    except Exception as e:
        logger.error(f"Promotion failed: {e}")
        raise
    finally:
        client.close()

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    target_role = Role(sys.argv[2]) if len(sys.argv) > 2 else Role.ADMIN
    asyncio.run(promote_user(sys.argv[1].strip(), target_role))
