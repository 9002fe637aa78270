"""
User Management API Endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
import re
import uuid
from datetime import datetime, timezone
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from app.api.deps import Claim, authenticate, require_admin
from app.models.user import (
    User, UserCreate, UserProfileUpdate, Role, RoleRequest, RoleUpdate, RoleResponse, SuspendRequest
)
from app.core.database import get_database
from app.core.errors import FORBIDDEN_MESSAGE
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=User)
async def upsert_user(
    user_data: Optional[UserCreate] = None,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database)
):
    """
    Register the caller on sign-in

    The email always comes from the verified token. An existing record is
    returned unchanged; a new one starts with the `user` role.
    """
    try:
        existing = await db.users.find_one({"email": claim.email}, {"_id": 0})
        if existing:
            return User.model_validate(existing)

        user_data = user_data or UserCreate()
        user = User(
            user_id=f"user_{uuid.uuid4().hex[:12]}",
            email=claim.email,
            role=Role.USER,
            display_name=user_data.display_name,
            photo_url=user_data.photo_url,
            created_at=datetime.now(timezone.utc)
        )

        try:
            await db.users.insert_one(user.model_dump(by_alias=True))
        except DuplicateKeyError:
            # Concurrent first sign-in
            existing = await db.users.find_one({"email": claim.email}, {"_id": 0})
            return User.model_validate(existing)

        logger.info(f"User created: {user.user_id} ({claim.email})")

        return user

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create user: {e}")
        raise HTTPException(status_code=500, detail="Failed to create user")

@router.get("/me", response_model=User)
async def get_me(claim: Claim = Depends(authenticate), db=Depends(get_database)):
    """Get the caller's user record"""
    user = await db.users.find_one({"email": claim.email}, {"_id": 0})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return User.model_validate(user)

@router.get("/me/role", response_model=RoleResponse)
async def get_my_role(claim: Claim = Depends(authenticate), db=Depends(get_database)):
    """Get the caller's role; callers without a record are plain users"""
    user = await db.users.find_one({"email": claim.email}, {"_id": 0, "role": 1})
    return RoleResponse(role=(user or {}).get("role") or Role.USER)

@router.patch("/me", response_model=User)
async def update_me(
    update_data: UserProfileUpdate,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database)
):
    """
    Update the caller's profile

    - **displayName**: New display name (optional)
    - **photoURL**: New avatar URL (optional)
    """
    try:
        changes = update_data.model_dump(by_alias=True, exclude_unset=True)
        changes["updatedAt"] = datetime.now(timezone.utc)

        updated = await db.users.find_one_and_update(
            {"email": claim.email},
            {"$set": changes},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise HTTPException(status_code=404, detail="User not found")

        logger.info(f"Profile updated: {claim.email}")
        return User.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update profile: {e}")
        raise HTTPException(status_code=500, detail="Failed to update profile")

@router.post("/me/role-request", response_model=User)
async def request_role(
    request_data: RoleRequest,
    claim: Claim = Depends(authenticate),
    db=Depends(get_database)
):
    """Ask an admin to be promoted to `manager` or `admin`"""
    if request_data.apply_for not in (Role.MANAGER, Role.ADMIN):
        raise HTTPException(status_code=422, detail="Only manager or admin can be requested")

    try:
        user = await db.users.find_one({"email": claim.email}, {"_id": 0})
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.get("role") == Role.SUSPENDED.value:
            raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)

        updated = await db.users.find_one_and_update(
            {"email": claim.email},
            {"$set": {"applyFor": request_data.apply_for.value, "updatedAt": datetime.now(timezone.utc)}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )

        logger.info(f"Role request: {claim.email} -> {request_data.apply_for.value}")
        return User.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to record role request: {e}")
        raise HTTPException(status_code=500, detail="Failed to record role request")

@router.get("/", response_model=List[User])
async def list_users(
    role: Optional[Role] = None,
    search: Optional[str] = None,
    limit: int = 100,
    skip: int = 0,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """Get all users, newest first"""
    try:
        query = {}
        if role:
            query["role"] = role.value
        if search:
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"email": pattern}, {"displayName": pattern}]

        cursor = db.users.find(query, {"_id": 0}).sort("createdAt", -1).skip(skip).limit(limit)
        users = await cursor.to_list(length=limit)

        return [User.model_validate(user) for user in users]

    except Exception as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(status_code=500, detail="Failed to list users")

@router.patch("/{user_id}/role", response_model=User)
async def update_user_role(
    user_id: str,
    role_data: Optional[RoleUpdate] = None,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """
    Change a user's role

    - **role**: New role; when omitted, the role the user asked for is granted
    """
    try:
        user = await db.users.find_one({"userId": user_id}, {"_id": 0})
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        role = role_data.role if role_data and role_data.role else None
        if role is None and user.get("applyFor"):
            role = Role(user["applyFor"])
        if role is None:
            raise HTTPException(status_code=422, detail="No role given and no pending role request")

        update = {"$set": {"role": role.value, "updatedAt": datetime.now(timezone.utc)}}
        unset = {"applyFor": ""}
        if role != Role.SUSPENDED:
            unset.update({"suspendReason": "", "suspendFeedback": ""})
        update["$unset"] = unset

        updated = await db.users.find_one_and_update(
            {"userId": user_id},
            update,
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )

        logger.info(f"Role changed: {user_id} -> {role.value} by {admin.get('email')}")
        return User.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to change role: {e}")
        raise HTTPException(status_code=500, detail="Failed to change role")

@router.patch("/{user_id}/suspend", response_model=User)
async def suspend_user(
    user_id: str,
    suspend_data: Optional[SuspendRequest] = None,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """Suspend a user; suspended users fail every role-gated endpoint"""
    try:
        suspend_data = suspend_data or SuspendRequest()
        updated = await db.users.find_one_and_update(
            {"userId": user_id},
            {
                "$set": {
                    "role": Role.SUSPENDED.value,
                    "suspendReason": suspend_data.reason,
                    "suspendFeedback": suspend_data.feedback,
                    "updatedAt": datetime.now(timezone.utc)
                },
                "$unset": {"applyFor": ""}
            },
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise HTTPException(status_code=404, detail="User not found")

        logger.info(f"User suspended: {user_id} by {admin.get('email')}")
        return User.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to suspend user: {e}")
        raise HTTPException(status_code=500, detail="Failed to suspend user")

@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    db=Depends(get_database)
):
    """Delete a user by ID"""
    try:
        result = await db.users.delete_one({"userId": user_id})
        if result.deleted_count == 0:
            raise HTTPException(status_code=404, detail="User not found")

        logger.info(f"User deleted: {user_id} by {admin.get('email')}")

        return {"message": f"User {user_id} deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete user: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete user")
