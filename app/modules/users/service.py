import logging
from datetime import datetime, timezone
from supabase import Client
from app.config import settings
from app.core.authorization import Role, parse_role
from app.modules.auth.service import user_to_dict, error_message
from app.modules.users.schemas import ProfileUpdate, ProfileResponse, InviteRequest
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])

    def update_profile(self, user_id: str, data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's display name and bio"""
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if data.full_name is not None:
            update_data["full_name"] = data.full_name
        if data.bio is not None:
            update_data["bio"] = data.bio

        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise HTTPException(status_code=400, detail="Failed to update profile")

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])

    def list_profiles(self, query: Optional[str] = None) -> List[ProfileResponse]:
        """All profiles newest first, optionally filtered by a name or email substring"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing profiles: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        profiles = [ProfileResponse(**row) for row in result.data or []]
        if query:
            needle = query.lower()
            profiles = [
                p for p in profiles
                if needle in (p.full_name or "").lower() or needle in p.email.lower()
            ]
        return profiles

    def update_role(self, user_id: str, role: Role) -> ProfileResponse:
        """Change a user's application role"""
        try:
            result = self.supabase.table("profiles")\
                .update({"role": role.value})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**result.data[0])


class AdminUserService:
    """Identity-provider operations that need the service role key"""

    def __init__(self, service_client: Client):
        self.supabase = service_client

    def invite_user(self, data: InviteRequest) -> Dict[str, Any]:
        if not data.email or not data.email.strip():
            raise HTTPException(status_code=400, detail="Email is required")
        role = parse_role(data.role or Role.PARTICIPANT.value)
        if role is None:
            raise HTTPException(status_code=400, detail=f"Invalid role: {data.role}")

        try:
            response = self.supabase.auth.admin.invite_user_by_email(
                data.email.strip(),
                {
                    "data": {
                        "full_name": data.full_name,
                        "role": role.value
                    },
                    "redirect_to": f"{settings.app_url}/login"
                }
            )
        except Exception as e:
            logger.error(f"Invite error: {e}")
            raise HTTPException(status_code=400, detail=error_message(e))

        user = getattr(response, "user", None)
        logger.info("Invited %s as %s", data.email, role.value)
        return {"user": user_to_dict(user) if user else None}

    def delete_user(self, user_id: str) -> None:
        """Delete user from auth (profile cascades)"""
        try:
            self.supabase.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Delete user error: {e}")
            raise HTTPException(status_code=400, detail=error_message(e))
        logger.info("Deleted user %s", user_id)
