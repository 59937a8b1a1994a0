import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.auth.service import error_message
from app.modules.journal.schemas import JournalEntryWrite, JournalEntryResponse
from typing import Any, Dict, List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def _entry_fields(data: JournalEntryWrite) -> Dict[str, Any]:
    content = data.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Content is required")
    title = (data.title or "").strip()
    return {"title": title or None, "content": content}


class JournalService:
    """Journal entries of a single user; nothing here reads or writes another user's rows"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_entries(self, user_id: str) -> List[JournalEntryResponse]:
        try:
            result = self.supabase.table("journal_entries")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading journal for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return [JournalEntryResponse(**row) for row in result.data or []]

    def get_entry(self, user_id: str, entry_id: str) -> JournalEntryResponse:
        try:
            result = self.supabase.table("journal_entries")\
                .select("*")\
                .eq("id", entry_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Journal entry not found")
        return JournalEntryResponse(**result.data[0])

    def create_entry(self, user_id: str, data: JournalEntryWrite) -> JournalEntryResponse:
        fields = _entry_fields(data)
        try:
            result = self.supabase.table("journal_entries").insert({
                "user_id": user_id,
                **fields
            }).execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))
        if not result.data:
            raise HTTPException(status_code=400, detail="Failed to save journal entry")
        return JournalEntryResponse(**result.data[0])

    def update_entry(self, user_id: str, entry_id: str, data: JournalEntryWrite) -> JournalEntryResponse:
        fields = _entry_fields(data)
        fields["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("journal_entries")\
                .update(fields)\
                .eq("id", entry_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Journal entry not found")
        return JournalEntryResponse(**result.data[0])

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        try:
            result = self.supabase.table("journal_entries")\
                .delete()\
                .eq("id", entry_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Journal entry not found")
