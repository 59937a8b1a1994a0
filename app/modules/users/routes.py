import logging
from fastapi import APIRouter, Depends, HTTPException, status
from app.core.authorization import Authorizer, Role, STAFF_ROLES
from app.core.cache import SessionCache, get_session_cache
from app.core.dependencies import get_authorizer, get_current_user, get_user_supabase, require_roles
from app.database.supabase_client import get_service_client_factory
from app.modules.users.schemas import ProfileUpdate, ProfileResponse, InviteRequest, RoleUpdate
from app.modules.users.service import UserService, AdminUserService
from supabase import Client
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def get_user_service(supabase: Client = Depends(get_user_supabase)) -> UserService:
    return UserService(supabase)


def _privileged_failure(exc: Exception, message: str) -> HTTPException:
    """Expected failures keep their 4xx status; anything else becomes a generic 500"""
    if isinstance(exc, HTTPException) and exc.status_code < 500:
        return exc
    logger.exception("%s: %s", message, exc)
    return HTTPException(status_code=500, detail=message)


@router.post("/invite")
async def invite_user(
    invite_data: InviteRequest,
    authorizer: Authorizer = Depends(get_authorizer),
    service_client_factory: Callable[[], Client] = Depends(get_service_client_factory)
):
    """Invite a user by email (admin only)"""
    authorizer.require(Role.ADMIN, message="Only admins can invite users")
    try:
        data = AdminUserService(service_client_factory()).invite_user(invite_data)
    except Exception as e:
        raise _privileged_failure(e, "Failed to send invitation")
    return {"success": True, "data": data}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    authorizer: Authorizer = Depends(get_authorizer),
    service_client_factory: Callable[[], Client] = Depends(get_service_client_factory),
    cache: SessionCache = Depends(get_session_cache)
):
    """Delete a user account (admin only, never yourself)"""
    if user_id == authorizer.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")
    authorizer.require(Role.ADMIN, message="Only admins can delete users")
    try:
        AdminUserService(service_client_factory()).delete_user(user_id)
    except Exception as e:
        raise _privileged_failure(e, "Failed to delete user")
    cache.clear_user_sessions(user_id)
    cache.invalidate("profile", user_id)
    cache.invalidate("membership", user_id)
    return {"success": True}


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Get the caller's profile"""
    return service.get_profile(user_data["id"])


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    cache: SessionCache = Depends(get_session_cache)
):
    """Update the caller's name and bio"""
    profile = service.update_profile(user_data["id"], profile_data)
    cache.invalidate("profile", user_data["id"])
    return profile


@router.get("/admin/users", response_model=List[ProfileResponse])
async def list_users(
    q: Optional[str] = None,
    user_data: Dict = Depends(require_roles(*STAFF_ROLES)),
    service: UserService = Depends(get_user_service)
):
    """List all users, newest first (admins and moderators)"""
    return service.list_profiles(q)


@router.patch("/admin/users/{user_id}/role", response_model=ProfileResponse)
async def update_user_role(
    user_id: str,
    role_data: RoleUpdate,
    user_data: Dict = Depends(require_roles(Role.ADMIN, message="Only admins can change roles")),
    service: UserService = Depends(get_user_service),
    cache: SessionCache = Depends(get_session_cache)
):
    """Change a user's role (admin only)"""
    profile = service.update_role(user_id, role_data.role)
    cache.invalidate("profile", user_id)
    return profile
