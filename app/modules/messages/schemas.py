from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from enum import Enum

from app.modules.users.schemas import ProfileResponse


class MessageType(str, Enum):
    ANNOUNCEMENT = "announcement"
    PROMPT = "prompt"
    GENERAL = "general"
    PRIVATE = "private"


BROADCAST_TYPES = (MessageType.ANNOUNCEMENT, MessageType.PROMPT)


class MessageCreate(BaseModel):
    content: str
    message_type: MessageType = MessageType.GENERAL
    recipient_id: Optional[str] = None  # None = whole cohort
    is_pinned: bool = False


class MessageResponse(BaseModel):
    id: str
    cohort_id: str
    sender_id: str
    recipient_id: Optional[str] = None
    content: str
    message_type: MessageType
    is_pinned: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sender: Optional[ProfileResponse] = None


class MessagesResponse(BaseModel):
    broadcasts: List[MessageResponse]
    private: List[MessageResponse]
