from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_user_supabase
from app.modules.cohorts.routes import get_cohort_service
from app.modules.cohorts.service import CohortService
from app.modules.documents.schemas import DocumentResponse, DownloadResponse
from app.modules.documents.service import DocumentService
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/documents", tags=["documents"])


def get_document_service(
    supabase: Client = Depends(get_user_supabase),
    cohorts: CohortService = Depends(get_cohort_service)
) -> DocumentService:
    return DocumentService(supabase, cohorts)


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    user_data: Dict = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """Documents shared with the caller's cohort, newest first"""
    return service.list_documents(user_data["id"])


@router.get("/{document_id}/download", response_model=DownloadResponse)
async def download_document(
    document_id: str,
    user_data: Dict = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """One-hour signed download URL"""
    return service.create_download_url(user_data["id"], document_id)
