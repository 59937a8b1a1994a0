from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_user_supabase
from app.modules.journal.schemas import JournalEntryWrite, JournalEntryResponse
from app.modules.journal.service import JournalService
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/journal", tags=["journal"])


def get_journal_service(supabase: Client = Depends(get_user_supabase)) -> JournalService:
    return JournalService(supabase)


# Every handler resolves the session again through get_current_user before touching rows
@router.get("", response_model=List[JournalEntryResponse])
async def list_entries(
    user_data: Dict = Depends(get_current_user),
    service: JournalService = Depends(get_journal_service)
):
    """The caller's journal entries, newest first"""
    return service.list_entries(user_data["id"])


@router.post("", response_model=JournalEntryResponse, status_code=201)
async def create_entry(
    entry_data: JournalEntryWrite,
    user_data: Dict = Depends(get_current_user),
    service: JournalService = Depends(get_journal_service)
):
    return service.create_entry(user_data["id"], entry_data)


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_entry(
    entry_id: str,
    user_data: Dict = Depends(get_current_user),
    service: JournalService = Depends(get_journal_service)
):
    return service.get_entry(user_data["id"], entry_id)


@router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_entry(
    entry_id: str,
    entry_data: JournalEntryWrite,
    user_data: Dict = Depends(get_current_user),
    service: JournalService = Depends(get_journal_service)
):
    return service.update_entry(user_data["id"], entry_id, entry_data)


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(
    entry_id: str,
    user_data: Dict = Depends(get_current_user),
    service: JournalService = Depends(get_journal_service)
):
    service.delete_entry(user_data["id"], entry_id)
    return None
