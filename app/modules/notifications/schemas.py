from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.modules.notifications.lifecycle import PermissionState, PushPayload


class NotificationType(str, Enum):
    MESSAGE = "message"
    ANNOUNCEMENT = "announcement"
    PROMPT = "prompt"
    DOCUMENT = "document"


class PermissionReport(BaseModel):
    """What the browser reported after (or without) prompting for notification permission"""
    previous: PermissionState = PermissionState.DEFAULT
    permission: PermissionState
    token: Optional[str] = None
    device_info: Optional[str] = None


class PermissionResponse(BaseModel):
    state: PermissionState
    registered: bool
    show_banner: bool


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    title: str
    body: str
    type: NotificationType
    reference_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None


class NotificationConfigResponse(BaseModel):
    vapid_key: Optional[str] = None


class ClickRequest(BaseModel):
    """A click on a shown notification, with the URLs of the app windows the browser has open"""
    payload: PushPayload = PushPayload()
    open_windows: List[str] = []
