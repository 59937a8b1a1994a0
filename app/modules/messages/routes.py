from fastapi import APIRouter, Depends
from app.core.authorization import Authorizer
from app.core.dependencies import get_authorizer, get_current_user, get_user_supabase
from app.modules.cohorts.routes import get_cohort_service
from app.modules.cohorts.service import CohortService
from app.modules.messages.schemas import MessageCreate, MessageResponse, MessagesResponse
from app.modules.messages.service import MessageService
from app.modules.notifications.routes import get_notification_service
from app.modules.notifications.service import NotificationService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/messages", tags=["messages"])


def get_message_service(
    supabase: Client = Depends(get_user_supabase),
    cohorts: CohortService = Depends(get_cohort_service),
    notifications: NotificationService = Depends(get_notification_service)
) -> MessageService:
    return MessageService(supabase, cohorts, notifications)


@router.get("", response_model=MessagesResponse)
async def list_messages(
    user_data: Dict = Depends(get_current_user),
    service: MessageService = Depends(get_message_service)
):
    """Cohort announcements/prompts and the caller's private messages"""
    return service.list_messages(user_data["id"])


@router.post("", response_model=MessageResponse, status_code=201)
async def create_message(
    message_data: MessageCreate,
    authorizer: Authorizer = Depends(get_authorizer),
    service: MessageService = Depends(get_message_service)
):
    """Send a message; announcements and prompts are reserved for moderators and admins"""
    return service.create_message(authorizer.user_id, authorizer.is_staff(), message_data)
