from fastapi import APIRouter, Depends
from app.config import settings
from app.core.dependencies import get_current_user, get_user_supabase
from app.modules.notifications.lifecycle import (
    ClickAction, DisplayNotification, PushPayload, resolve_click, to_display_notification
)
from app.modules.notifications.schemas import (
    ClickRequest, PermissionReport, PermissionResponse, NotificationResponse, NotificationConfigResponse
)
from app.modules.notifications.service import NotificationService
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_user_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("/config", response_model=NotificationConfigResponse)
async def get_notification_config():
    """Public web push key the browser needs to request a messaging token"""
    return NotificationConfigResponse(vapid_key=settings.firebase_vapid_key)


@router.post("/permission", response_model=PermissionResponse)
async def report_permission(
    report: PermissionReport,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Record the browser's notification permission and register its token when granted"""
    return service.record_permission(user_data["id"], report)


@router.delete("/tokens/{token}", status_code=204)
async def remove_token(
    token: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Forget a device token, e.g. when signing out on that device"""
    service.remove_token(user_data["id"], token)
    return None


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """The caller's in-app notifications, newest first"""
    return service.list_notifications(user_data["id"])


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(user_data["id"], notification_id)


@router.get("/{notification_id}/push", response_model=PushPayload)
async def get_push_payload(
    notification_id: str,
    user_data: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """The messaging payload for one of the caller's notifications"""
    return service.push_payload(user_data["id"], notification_id)


@router.post("/display", response_model=DisplayNotification)
async def display_notification(payload: PushPayload):
    """What the service worker shows for a received push payload"""
    return to_display_notification(payload)


@router.post("/click", response_model=ClickAction)
async def click_notification(click: ClickRequest):
    """Where a click on a shown notification should land"""
    return resolve_click(to_display_notification(click.payload), click.open_windows, settings.app_url)
