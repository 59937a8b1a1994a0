from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class JournalEntryWrite(BaseModel):
    title: Optional[str] = None
    content: str


class JournalEntryResponse(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
