from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from app.core.authorization import Role


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    bio: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role = Role.PARTICIPANT
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InviteRequest(BaseModel):
    """Body of POST /api/invite; fields are checked by the service so errors read {"error": ...}"""
    email: Optional[str] = None
    full_name: Optional[str] = Field(default=None, alias="fullName")
    role: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class RoleUpdate(BaseModel):
    role: Role
