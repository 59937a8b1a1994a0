"""
Role resolution and the authorization decision object shared by every protected route.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict
from supabase import Client

from app.core.cache import SessionCache

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"


class Role(str, Enum):
    PARTICIPANT = "participant"
    MODERATOR = "moderator"
    ADMIN = "admin"


STAFF_ROLES = (Role.MODERATOR, Role.ADMIN)

_BASE_NAVIGATION = [
    ("/dashboard", "Home"),
    ("/cohort", "My Cohort"),
    ("/journal", "Journal"),
    ("/messages", "Messages"),
    ("/documents", "Documents"),
]
_STAFF_NAVIGATION = [("/admin", "Admin")]


class Decision(BaseModel):
    """Outcome of an authorization check: allowed, or denied with a reason."""
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None
    status_code: int = status.HTTP_200_OK
    redirect_to: Optional[str] = None


ALLOWED = Decision(allowed=True)


def denied(reason: str, status_code: int = status.HTTP_403_FORBIDDEN, redirect_to: Optional[str] = DASHBOARD_PATH) -> Decision:
    return Decision(allowed=False, reason=reason, status_code=status_code, redirect_to=redirect_to)


def fetch_profile(supabase: Client, user_id: str) -> Optional[Dict[str, Any]]:
    """Profile row for a user, or None when the row does not exist"""
    result = supabase.table("profiles")\
        .select("*")\
        .eq("id", user_id)\
        .limit(1)\
        .execute()
    return result.data[0] if result.data else None


def parse_role(value: Any) -> Optional[Role]:
    try:
        return Role(value)
    except ValueError:
        return None


def resolve_role(supabase: Client, user_id: str) -> Optional[Role]:
    profile = fetch_profile(supabase, user_id)
    if not profile:
        return None
    return parse_role(profile.get("role"))


def navigation_for(role: Optional[Role]) -> List[Dict[str, str]]:
    items = list(_BASE_NAVIGATION)
    if role in STAFF_ROLES:
        items += _STAFF_NAVIGATION
    return [{"href": href, "label": label} for href, label in items]


class Authorizer:
    """Authorization capability for one request: knows the caller and their profile."""

    def __init__(
        self,
        supabase: Client,
        user: Optional[Dict[str, Any]],
        cache: SessionCache,
        session: Optional[str] = None,
    ):
        self.supabase = supabase
        self.user = user
        self.cache = cache
        self.session = session

    @property
    def user_id(self) -> Optional[str]:
        return self.user["id"] if self.user else None

    def profile(self) -> Optional[Dict[str, Any]]:
        if not self.user:
            return None
        return self.cache.get_or_load(
            self.session, "profile", self.user_id,
            lambda: fetch_profile(self.supabase, self.user_id)
        )

    def role(self) -> Optional[Role]:
        profile = self.profile()
        if not profile:
            return None
        return parse_role(profile.get("role"))

    def decide(self, roles: Iterable[Role], message: Optional[str] = None) -> Decision:
        if not self.user:
            return denied("Unauthorized", status.HTTP_401_UNAUTHORIZED, redirect_to="/login")
        role = self.role()
        if role is None:
            return denied("Profile not found")
        if role not in tuple(roles):
            return denied(message or "Insufficient permissions")
        return ALLOWED

    def enforce(self, decision: Decision) -> None:
        if decision.allowed:
            return
        logger.info("Access denied for user %s: %s", self.user_id, decision.reason)
        raise HTTPException(status_code=decision.status_code, detail=decision.reason)

    def require(self, *roles: Role, message: Optional[str] = None) -> Dict[str, Any]:
        self.enforce(self.decide(roles, message))
        return self.user

    def is_admin(self) -> bool:
        return self.role() is Role.ADMIN

    def is_staff(self) -> bool:
        return self.role() in STAFF_ROLES
