import logging
from supabase import Client
from app.core.cache import IDENTITY, SessionCache, session_key
from app.modules.auth.schemas import (
    LoginRequest, TokenResponse, SessionTokens, EstablishedSession, SetPasswordRequest
)
from app.config.settings import settings
from fastapi import HTTPException, Response
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
MIN_PASSWORD_LENGTH = 8


class InvalidCredentials(HTTPException):
    def __init__(self):
        super().__init__(status_code=401, detail="Invalid email or password")


def error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def user_to_dict(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
        "updated_at": user.updated_at
    }


def _session_tokens(session) -> SessionTokens:
    return SessionTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=getattr(session, "expires_in", None)
    )


def set_session_cookies(response: Response, tokens: SessionTokens) -> None:
    for name, value in (
        (ACCESS_TOKEN_COOKIE, tokens.access_token),
        (REFRESH_TOKEN_COOKIE, tokens.refresh_token),
    ):
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite="lax",
            path="/"
        )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")


class AuthService:
    def __init__(self, supabase: Client, cache: Optional[SessionCache] = None):
        self.supabase = supabase
        self.cache = cache

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_msg = error_message(e)
            if "invalid" in error_msg.lower() or "credentials" in error_msg.lower():
                raise InvalidCredentials()
            logger.error(f"Sign-in failed: {error_msg}")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_msg}")

        if not auth_response.user or not auth_response.session:
            raise InvalidCredentials()

        tokens = _session_tokens(auth_response.session)
        return TokenResponse(
            **tokens.model_dump(),
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Cached per session to reduce auth API calls."""
        if self.cache is None:
            return self._fetch_user(token)
        return self.cache.get_or_load(
            session_key(token), "user", IDENTITY,
            lambda: self._fetch_user(token)
        )

    def _fetch_user(self, token: str) -> Dict[str, Any]:
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Unauthorized")
            return user_to_dict(user_response.user)
        except HTTPException:
            raise
        except Exception as e:
            error_msg = error_message(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Unauthorized")

    def logout(self, token: Optional[str]) -> None:
        """Revoke the session's refresh tokens remotely; the local session is always dropped by the caller."""
        if not token:
            return
        if self.cache is not None:
            self.cache.clear_session(session_key(token))
        try:
            self.supabase.auth.admin.sign_out(token)
        except Exception as e:
            logger.warning(f"Remote sign-out failed, clearing local session anyway: {e}")

    def establish_session(self, access_token: str, refresh_token: str) -> EstablishedSession:
        """Adopt an access/refresh pair delivered in an invite, magic link or recovery redirect"""
        try:
            auth_response = self.supabase.auth.set_session(access_token, refresh_token)
        except Exception as e:
            raise HTTPException(status_code=401, detail=error_message(e))
        return self._established(auth_response)

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> EstablishedSession:
        """Trade a PKCE authorization code for a session"""
        params = {"auth_code": code, "redirect_to": f"{settings.app_url}/auth/callback"}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = self.supabase.auth.exchange_code_for_session(params)
        except Exception as e:
            raise HTTPException(status_code=401, detail=error_message(e))
        return self._established(auth_response)

    def set_password(self, tokens: SessionTokens, data: SetPasswordRequest) -> None:
        """Set the caller's password after an invite or recovery link"""
        if data.password != data.confirm_password:
            raise HTTPException(status_code=400, detail="Passwords do not match")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        try:
            self.supabase.auth.set_session(tokens.access_token, tokens.refresh_token)
        except Exception as e:
            raise HTTPException(status_code=401, detail=error_message(e))
        try:
            self.supabase.auth.update_user({"password": data.password})
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))

    def _established(self, auth_response) -> EstablishedSession:
        if not auth_response or not auth_response.session:
            raise HTTPException(status_code=401, detail="No session returned")
        user = auth_response.user or auth_response.session.user
        if user is None:
            raise HTTPException(status_code=401, detail="No user returned")
        return EstablishedSession(
            tokens=_session_tokens(auth_response.session),
            user=user_to_dict(user)
        )
