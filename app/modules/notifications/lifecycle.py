"""
Push notification lifecycle.

Browser permission moves default -> granted | denied. Only a granted permission leads to a
device token being registered. A denied permission can later be re-granted from the
browser settings; a decided permission never returns to default.

Push messages use the Firebase Cloud Messaging shape
{"notification": {"title", "body"}, "data": {"tag", "url"}}. The helpers here normalise a
payload into what the browser shows and decide where a click on it should land.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Sequence
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

APP_TITLE = "Journey Home"
DEFAULT_BODY = "You have a new message"
DEFAULT_TAG = "journey-home-notification"
DEFAULT_CLICK_URL = "/dashboard"
NOTIFICATION_ICON = "/Journey-Home_White_Simple.png"
BODY_PREVIEW_LENGTH = 120


class PermissionState(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


_TRANSITIONS: Dict[PermissionState, FrozenSet[PermissionState]] = {
    PermissionState.DEFAULT: frozenset({PermissionState.GRANTED, PermissionState.DENIED}),
    PermissionState.DENIED: frozenset({PermissionState.GRANTED}),
    PermissionState.GRANTED: frozenset({PermissionState.DENIED}),
}


class InvalidTransition(ValueError):
    pass


def transition(current: PermissionState, reported: PermissionState) -> PermissionState:
    if reported == current:
        return current
    if reported not in _TRANSITIONS[current]:
        raise InvalidTransition(f"Permission cannot go from {current.value} to {reported.value}")
    return reported


def should_show_banner(state: PermissionState) -> bool:
    return state is PermissionState.DEFAULT


class PushContent(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class PushData(BaseModel):
    tag: Optional[str] = None
    url: Optional[str] = None


class PushPayload(BaseModel):
    notification: Optional[PushContent] = None
    data: Optional[PushData] = None


class DisplayNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    tag: str
    url: str
    icon: str = NOTIFICATION_ICON
    badge: str = NOTIFICATION_ICON


class ClickAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str  # "focus" | "open"
    url: str
    window_index: Optional[int] = None


def preview(text: str, length: int = BODY_PREVIEW_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) <= length:
        return text
    return text[:length - 1].rstrip() + "…"


def build_push_payload(title: str, body: str, tag: Optional[str] = None, url: Optional[str] = None) -> PushPayload:
    return PushPayload(
        notification=PushContent(title=title, body=preview(body)),
        data=PushData(tag=tag or DEFAULT_TAG, url=url or DEFAULT_CLICK_URL)
    )


def to_display_notification(payload: PushPayload) -> DisplayNotification:
    content = payload.notification or PushContent()
    data = payload.data or PushData()
    return DisplayNotification(
        title=content.title or APP_TITLE,
        body=content.body or DEFAULT_BODY,
        tag=data.tag or DEFAULT_TAG,
        url=data.url or DEFAULT_CLICK_URL
    )


def resolve_click(notification: DisplayNotification, open_windows: Sequence[str], origin: str) -> ClickAction:
    """Focus the first open window of this app and navigate it, otherwise open a new one"""
    app_origin = urlsplit(origin)
    for index, window_url in enumerate(open_windows):
        parts = urlsplit(window_url)
        if (parts.scheme, parts.netloc) == (app_origin.scheme, app_origin.netloc):
            return ClickAction(action="focus", url=notification.url, window_index=index)
    return ClickAction(action="open", url=notification.url)
