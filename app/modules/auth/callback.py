"""
Auth redirect handling.

Supabase sends users back to /auth/callback after an invite, magic link, password
recovery or OAuth sign-in. The redirect carries either an implicit-flow token pair
in the URL fragment (which the browser forwards to POST /auth/callback) or a PKCE
authorization code in the query string. Once a session is established the user is
routed to password setup when the link was an invite, signup or recovery, or when the
account was created moments ago; otherwise to the dashboard.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Union
from urllib.parse import quote, urlencode

from fastapi import HTTPException
from pydantic import BaseModel, ConfigDict

from app.modules.auth.schemas import CallbackRequest, EstablishedSession
from app.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

SET_PASSWORD_PATH = "/auth/set-password"
DASHBOARD_PATH = "/dashboard"
LOGIN_PATH = "/login"
PASSWORD_SETUP_LINK_TYPES = frozenset({"invite", "signup", "recovery"})
FAILURE_REDIRECT_DELAY_MS = 2000


class CallbackState(str, Enum):
    NO_CREDENTIALS = "no_credentials"
    TOKEN_FRAGMENT_PRESENT = "token_fragment_present"
    AUTHORIZATION_CODE_PRESENT = "authorization_code_present"
    SESSION_ESTABLISHED = "session_established"
    FAILED = "failed"


class CallbackOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: CallbackState
    redirect_to: str
    delay_ms: int = 0
    session: Optional[EstablishedSession] = None


def classify(params: CallbackRequest) -> CallbackState:
    if params.access_token and params.refresh_token:
        return CallbackState.TOKEN_FRAGMENT_PRESENT
    if params.code:
        return CallbackState.AUTHORIZATION_CODE_PRESENT
    return CallbackState.NO_CREDENTIALS


def login_redirect(error: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'error': error}, quote_via=quote)}"


def safe_next_path(next_path: Optional[str]) -> str:
    """Only same-site absolute paths are honoured; anything else goes to the dashboard."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//") or "\\" in next_path:
        return DASHBOARD_PATH
    return next_path


def _as_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def is_recent_account(created_at: Union[str, datetime, None], now: datetime, window: timedelta) -> bool:
    created = _as_datetime(created_at)
    if created is None:
        return False
    return now - created < window


def needs_password_setup(
    link_type: Optional[str],
    created_at: Union[str, datetime, None],
    now: datetime,
    window: timedelta,
) -> bool:
    return link_type in PASSWORD_SETUP_LINK_TYPES or is_recent_account(created_at, now, window)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthCallbackHandler:
    def __init__(
        self,
        auth_service: AuthService,
        new_user_window: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.auth_service = auth_service
        self.new_user_window = new_user_window
        self.clock = clock

    def handle(self, params: CallbackRequest, code_verifier: Optional[str] = None) -> CallbackOutcome:
        state = classify(params)
        if state is CallbackState.NO_CREDENTIALS:
            return CallbackOutcome(
                state=state,
                redirect_to=login_redirect("No authentication data found"),
                delay_ms=FAILURE_REDIRECT_DELAY_MS
            )

        try:
            if state is CallbackState.TOKEN_FRAGMENT_PRESENT:
                session = self.auth_service.establish_session(params.access_token, params.refresh_token)
            else:
                session = self.auth_service.exchange_code(params.code, code_verifier)
        except HTTPException as e:
            logger.warning("Auth callback failed (%s): %s", state.value, e.detail)
            return CallbackOutcome(
                state=CallbackState.FAILED,
                redirect_to=login_redirect("Authentication failed"),
                delay_ms=FAILURE_REDIRECT_DELAY_MS
            )

        if needs_password_setup(params.type, session.user.get("created_at"), self.clock(), self.new_user_window):
            redirect_to = SET_PASSWORD_PATH
        else:
            redirect_to = safe_next_path(params.next)
        logger.info("Session established for user %s, routing to %s", session.user.get("id"), redirect_to)
        return CallbackOutcome(
            state=CallbackState.SESSION_ESTABLISHED,
            redirect_to=redirect_to,
            session=session
        )
