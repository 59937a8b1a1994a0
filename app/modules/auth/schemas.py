from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Any, Dict, List, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class TokenResponse(SessionTokens):
    user_id: str
    email: str


class EstablishedSession(BaseModel):
    """Session issued by the identity provider together with the user it belongs to."""
    model_config = ConfigDict(frozen=True)

    tokens: SessionTokens
    user: Dict[str, Any]


class SetPasswordRequest(BaseModel):
    password: str
    confirm_password: str


class CallbackRequest(BaseModel):
    """Credentials the browser lifts out of the redirect URL fragment or query string."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None
    next: Optional[str] = None


class CallbackResponse(BaseModel):
    state: str
    redirect_to: str
    delay_ms: int = 0


class NavItem(BaseModel):
    href: str
    label: str


class MeResponse(BaseModel):
    id: str
    email: str
    name: str
    avatar_url: Optional[str] = None
    role: str
    has_profile: bool
    navigation: List[NavItem]
