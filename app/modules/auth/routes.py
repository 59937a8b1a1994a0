from datetime import timedelta
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from app.config import settings
from app.core.authorization import Authorizer, navigation_for
from app.core.dependencies import (
    get_authorizer, get_optional_access_token, get_session_auth_service, get_session_tokens
)
from app.modules.auth.callback import AuthCallbackHandler, CallbackState
from app.modules.auth.schemas import (
    LoginRequest, TokenResponse, SessionTokens, SetPasswordRequest,
    CallbackRequest, CallbackResponse, MeResponse
)
from app.modules.auth.service import AuthService, set_session_cookies, clear_session_cookies
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])

# Mounted without the /api prefix: this is the URL Supabase redirects browsers to
callback_router = APIRouter(prefix="/auth", tags=["auth-callback"])

CODE_VERIFIER_COOKIE = "sb-code-verifier"


def get_callback_handler(
    service: AuthService = Depends(get_session_auth_service)
) -> AuthCallbackHandler:
    return AuthCallbackHandler(service, timedelta(minutes=settings.new_user_window_minutes))


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_session_auth_service)
):
    """Sign in with email and password; the session is also stored in cookies"""
    token_response = service.login(login_data)
    set_session_cookies(response, token_response)
    return token_response


@router.post("/logout", status_code=200)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_optional_access_token),
    service: AuthService = Depends(get_session_auth_service)
):
    """Logout; always succeeds locally even when the remote sign-out fails"""
    service.logout(token)
    clear_session_cookies(response)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(authorizer: Authorizer = Depends(get_authorizer)):
    """Current user with display name, role and the navigation entries that role may see"""
    user = authorizer.user
    profile = authorizer.profile()
    role = authorizer.role()
    email = user.get("email") or ""
    if profile:
        name = profile.get("full_name") or email or "Pilgrim"
        avatar_url = profile.get("avatar_url")
    else:
        name = email or "Pilgrim"
        avatar_url = None
    return MeResponse(
        id=user["id"],
        email=email,
        name=name,
        avatar_url=avatar_url,
        role=role.value if role else "participant",
        has_profile=profile is not None,
        navigation=navigation_for(role)
    )


@router.post("/set-password")
async def set_password(
    data: SetPasswordRequest,
    tokens: SessionTokens = Depends(get_session_tokens),
    service: AuthService = Depends(get_session_auth_service)
):
    """Set a password after following an invite or recovery link"""
    service.set_password(tokens, data)
    return {"success": True, "redirect_to": "/dashboard"}


@callback_router.get("/callback")
async def auth_callback_redirect(
    request: Request,
    code: Optional[str] = None,
    type: Optional[str] = None,
    next: Optional[str] = None,
    handler: AuthCallbackHandler = Depends(get_callback_handler)
):
    """PKCE redirect target: exchange the code and send the browser on"""
    outcome = handler.handle(
        CallbackRequest(code=code, type=type, next=next),
        code_verifier=request.cookies.get(CODE_VERIFIER_COOKIE)
    )
    response = RedirectResponse(f"{settings.app_url}{outcome.redirect_to}")
    if outcome.state is CallbackState.SESSION_ESTABLISHED:
        set_session_cookies(response, outcome.session.tokens)
        response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")
    return response


@callback_router.post("/callback", response_model=CallbackResponse)
async def auth_callback_tokens(
    params: CallbackRequest,
    request: Request,
    response: Response,
    handler: AuthCallbackHandler = Depends(get_callback_handler)
):
    """Fragment flow: the browser posts the tokens (or code) it found in the redirect URL"""
    outcome = handler.handle(params, code_verifier=request.cookies.get(CODE_VERIFIER_COOKIE))
    if outcome.state is CallbackState.SESSION_ESTABLISHED:
        set_session_cookies(response, outcome.session.tokens)
    return CallbackResponse(
        state=outcome.state.value,
        redirect_to=outcome.redirect_to,
        delay_ms=outcome.delay_ms
    )
