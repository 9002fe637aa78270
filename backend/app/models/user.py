"""
User Models
"""
from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

class Role(str, Enum):
    """Platform roles"""
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"
    SUSPENDED = "suspended"

class User(BaseModel):
    """User model"""
    user_id: str = Field(..., description="Unique user identifier")
    email: EmailStr = Field(..., description="User email")
    role: Role = Field(Role.USER, description="Current platform role")
    display_name: Optional[str] = Field(None, description="Display name")
    photo_url: Optional[str] = Field(None, alias="photoURL", description="Avatar URL")
    apply_for: Optional[Role] = Field(None, description="Role requested by the user")
    suspend_reason: Optional[str] = None
    suspend_feedback: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "userId": "user_3f9a1c2b7d4e",
                "email": "borrower@example.com",
                "role": "user",
                "displayName": "Jane Borrower",
                "photoURL": "https://example.com/avatar.png"
            }
        }
        from_attributes = True

class UserCreate(BaseModel):
    """Sign-in upsert request; the email always comes from the verified token"""
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class UserProfileUpdate(BaseModel):
    """Self-service profile update"""
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class RoleRequest(BaseModel):
    """Request to be promoted to another role"""
    apply_for: Role

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class RoleUpdate(BaseModel):
    """Admin role change; falls back to the user's pending request when omitted"""
    role: Optional[Role] = None

class SuspendRequest(BaseModel):
    """Admin suspension request"""
    reason: Optional[str] = None
    feedback: Optional[str] = None

class RoleResponse(BaseModel):
    role: Role
