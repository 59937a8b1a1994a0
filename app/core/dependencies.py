"""
Core dependencies for session resolution and route protection
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.authorization import Authorizer, Role
from app.core.cache import SessionCache, get_session_cache, session_key
from app.database.supabase_client import SupabaseClient, get_supabase, get_session_supabase
from app.modules.auth.schemas import SessionTokens
from app.modules.auth.service import AuthService, ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from supabase import Client
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    cache: SessionCache = Depends(get_session_cache)
) -> AuthService:
    return AuthService(supabase, cache)


def get_session_auth_service(
    supabase: Client = Depends(get_session_supabase),
    cache: SessionCache = Depends(get_session_cache)
) -> AuthService:
    return AuthService(supabase, cache)


def get_optional_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Optional[str]:
    """Bearer token from the Authorization header, falling back to the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def get_access_token(token: Optional[str] = Depends(get_optional_access_token)) -> str:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return token


def get_session_tokens(request: Request, access_token: str = Depends(get_access_token)) -> SessionTokens:
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Auth session missing")
    return SessionTokens(access_token=access_token, refresh_token=refresh_token)


def get_current_user(
    token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the caller from their access token; 401 when there is no valid session"""
    return auth_service.get_current_user(token)


def get_user_supabase(token: str = Depends(get_access_token)) -> Client:
    return SupabaseClient.get_user_client(token)


def get_session_id(token: str = Depends(get_access_token)) -> str:
    return session_key(token)


def get_authorizer(
    user_data: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase),
    cache: SessionCache = Depends(get_session_cache),
    session: str = Depends(get_session_id)
) -> Authorizer:
    return Authorizer(supabase, user_data, cache, session)


def require_roles(*roles: Role, message: Optional[str] = None):
    """Factory function to create a role check dependency"""
    def check_roles(authorizer: Authorizer = Depends(get_authorizer)) -> Dict[str, Any]:
        return authorizer.require(*roles, message=message)
    return check_roles
