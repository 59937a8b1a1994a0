import logging
from supabase import Client
from app.modules.auth.service import error_message
from app.modules.cohorts.service import CohortService
from app.modules.messages.schemas import (
    MessageCreate, MessageResponse, MessagesResponse, MessageType, BROADCAST_TYPES
)
from app.modules.notifications.schemas import NotificationType
from app.modules.notifications.service import NotificationService
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)

MESSAGE_WITH_SENDER = "*, sender:profiles!sender_id(*)"

_NOTIFICATION_TITLES = {
    MessageType.ANNOUNCEMENT: "New announcement",
    MessageType.PROMPT: "New reflection prompt",
    MessageType.PRIVATE: "New private message",
}


class MessageService:
    def __init__(self, supabase: Client, cohorts: CohortService, notifications: NotificationService):
        self.supabase = supabase
        self.cohorts = cohorts
        self.notifications = notifications

    def list_messages(self, user_id: str) -> MessagesResponse:
        """Cohort announcements and prompts (pinned first, newest first) and the caller's private messages"""
        cohort_id = self.cohorts.get_cohort_id(user_id)
        try:
            broadcasts = []
            if cohort_id:
                result = self.supabase.table("messages")\
                    .select(MESSAGE_WITH_SENDER)\
                    .eq("cohort_id", cohort_id)\
                    .is_("recipient_id", "null")\
                    .in_("message_type", [t.value for t in BROADCAST_TYPES])\
                    .order("is_pinned", desc=True)\
                    .order("created_at", desc=True)\
                    .execute()
                broadcasts = result.data or []

            private_result = self.supabase.table("messages")\
                .select(MESSAGE_WITH_SENDER)\
                .or_(f"recipient_id.eq.{user_id},sender_id.eq.{user_id}")\
                .eq("message_type", MessageType.PRIVATE.value)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading messages for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        return MessagesResponse(
            broadcasts=[MessageResponse(**m) for m in broadcasts],
            private=[MessageResponse(**m) for m in private_result.data or []]
        )

    def create_message(self, user_id: str, is_staff: bool, data: MessageCreate) -> MessageResponse:
        """Post a message to the caller's cohort or privately to one member"""
        content = data.content.strip()
        if not content:
            raise HTTPException(status_code=400, detail="Content is required")
        if data.message_type in BROADCAST_TYPES and not is_staff:
            raise HTTPException(status_code=403, detail="Only moderators and admins can post announcements and prompts")
        if data.message_type is MessageType.PRIVATE:
            if not data.recipient_id:
                raise HTTPException(status_code=400, detail="Recipient is required for private messages")
            if data.recipient_id == user_id:
                raise HTTPException(status_code=400, detail="You cannot message yourself")
        elif data.recipient_id:
            raise HTTPException(status_code=400, detail="Only private messages can have a recipient")

        cohort_id = self.cohorts.get_cohort_id(user_id)
        if not cohort_id:
            raise HTTPException(status_code=400, detail="You are not a member of a cohort")

        try:
            result = self.supabase.table("messages").insert({
                "cohort_id": cohort_id,
                "sender_id": user_id,
                "recipient_id": data.recipient_id,
                "content": content,
                "message_type": data.message_type.value,
                "is_pinned": data.is_pinned and is_staff
            }).execute()
        except Exception as e:
            logger.error(f"Error creating message: {e}")
            raise HTTPException(status_code=400, detail=error_message(e))

        if not result.data:
            raise HTTPException(status_code=400, detail="Failed to send message")
        message = MessageResponse(**result.data[0])
        self._notify(message)
        return message

    def _notify(self, message: MessageResponse) -> None:
        title = _NOTIFICATION_TITLES.get(message.message_type)
        if title is None:
            return
        if message.message_type is MessageType.PRIVATE:
            recipients = [message.recipient_id]
            notification_type = NotificationType.MESSAGE
        else:
            recipients = self._cohort_members_except(message.cohort_id, message.sender_id)
            notification_type = NotificationType(message.message_type.value)
        self.notifications.notify_users(
            recipients, title, message.content, notification_type, reference_id=message.id
        )

    def _cohort_members_except(self, cohort_id: str, user_id: str) -> List[str]:
        try:
            result = self.supabase.table("cohort_members")\
                .select("user_id")\
                .eq("cohort_id", cohort_id)\
                .execute()
        except Exception as e:
            logger.warning(f"Could not list members of cohort {cohort_id}: {e}")
            return []
        return [m["user_id"] for m in result.data or [] if m["user_id"] != user_id]
