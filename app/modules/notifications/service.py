import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.auth.service import error_message
from app.modules.notifications.lifecycle import (
    InvalidTransition, PermissionState, PushPayload, build_push_payload, preview, should_show_banner, transition
)
from app.modules.notifications.schemas import (
    NotificationType, NotificationResponse, PermissionReport, PermissionResponse
)
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

NOTIFICATION_URLS = {
    NotificationType.MESSAGE: "/messages",
    NotificationType.ANNOUNCEMENT: "/messages",
    NotificationType.PROMPT: "/messages",
    NotificationType.DOCUMENT: "/documents",
}


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record_permission(self, user_id: str, report: PermissionReport) -> PermissionResponse:
        """Apply the browser's permission outcome; a grant with a token registers the device"""
        try:
            state = transition(report.previous, report.permission)
        except InvalidTransition as e:
            raise HTTPException(status_code=400, detail=str(e))

        registered = False
        if state is PermissionState.GRANTED and report.token:
            self.register_token(user_id, report.token, report.device_info)
            registered = True
        elif state is PermissionState.GRANTED:
            logger.info("Permission granted for %s but no messaging token was issued", user_id)
        return PermissionResponse(state=state, registered=registered, show_banner=should_show_banner(state))

    def register_token(self, user_id: str, token: str, device_info: Optional[str] = None) -> None:
        """Upsert a device token; one row per (user_id, token)"""
        try:
            self.supabase.table("fcm_tokens").upsert(
                {
                    "user_id": user_id,
                    "token": token,
                    "device_info": device_info,
                    "updated_at": datetime.now(timezone.utc).isoformat()
                },
                on_conflict="user_id,token"
            ).execute()
        except Exception as e:
            logger.error(f"Error saving messaging token: {e}")
            raise HTTPException(status_code=400, detail=error_message(e))

    def remove_token(self, user_id: str, token: str) -> bool:
        try:
            result = self.supabase.table("fcm_tokens")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("token", token)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))
        return len(result.data or []) > 0

    def list_notifications(self, user_id: str, limit: int = 50) -> List[NotificationResponse]:
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return [NotificationResponse(**row) for row in result.data or []]

    def mark_read(self, user_id: str, notification_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Notification not found")
        return NotificationResponse(**result.data[0])

    def push_payload(self, user_id: str, notification_id: str) -> PushPayload:
        """The messaging payload for one of the caller's in-app notifications"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Notification not found")
        row = result.data[0]
        notification_type = NotificationType(row["type"])
        reference_id = row.get("reference_id")
        return build_push_payload(
            row["title"], row["body"],
            tag=f"{notification_type.value}-{reference_id}" if reference_id else None,
            url=NOTIFICATION_URLS.get(notification_type)
        )

    def notify_users(
        self,
        user_ids: List[str],
        title: str,
        body: str,
        notification_type: NotificationType,
        reference_id: Optional[str] = None,
    ) -> None:
        """Record in-app notifications for the recipients; push delivery reads them from there.

        Best effort: a failure here is logged and never fails the write that triggered it.
        """
        if not user_ids:
            return
        try:
            self.supabase.table("notifications").insert([
                {
                    "user_id": uid,
                    "title": title,
                    "body": preview(body),
                    "type": notification_type.value,
                    "reference_id": reference_id
                }
                for uid in user_ids
            ]).execute()
        except Exception as e:
            logger.warning(f"Could not record {notification_type.value} notifications: {e}")
            return
        logger.info("Recorded %s notification for %d users", notification_type.value, len(user_ids))
