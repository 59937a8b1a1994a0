"""Cohort documents and time-limited download links from Supabase Storage."""
import logging
from supabase import Client
from app.config import settings
from app.modules.auth.service import error_message
from app.modules.cohorts.service import CohortService
from app.modules.documents.schemas import DocumentResponse, DownloadResponse
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(self, supabase: Client, cohorts: CohortService):
        self.supabase = supabase
        self.cohorts = cohorts

    def list_documents(self, user_id: str) -> List[DocumentResponse]:
        cohort_id = self.cohorts.get_cohort_id(user_id)
        if not cohort_id:
            return []
        try:
            result = self.supabase.table("documents")\
                .select("*")\
                .eq("cohort_id", cohort_id)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing documents for cohort {cohort_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return [DocumentResponse(**row) for row in result.data or []]

    def create_download_url(self, user_id: str, document_id: str) -> DownloadResponse:
        """Signed URL for a document in the caller's cohort"""
        cohort_id = self.cohorts.get_cohort_id(user_id)
        if not cohort_id:
            raise HTTPException(status_code=404, detail="Document not found")
        try:
            result = self.supabase.table("documents")\
                .select("*")\
                .eq("id", document_id)\
                .eq("cohort_id", cohort_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Document not found")
        document = DocumentResponse(**result.data[0])

        try:
            signed = self.supabase.storage\
                .from_(settings.documents_bucket)\
                .create_signed_url(document.file_path, settings.signed_url_ttl_seconds)
        except Exception as e:
            logger.error(f"Error signing {document.file_path}: {e}")
            raise HTTPException(status_code=400, detail=error_message(e))

        url = (signed.get("signedUrl") or signed.get("signedURL")) if signed else None
        if not url:
            raise HTTPException(status_code=400, detail="Could not create download link")
        return DownloadResponse(url=url, expires_in=settings.signed_url_ttl_seconds)
