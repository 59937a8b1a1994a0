from pydantic import BaseModel, computed_field
from typing import Optional
from datetime import datetime


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def file_kind(file_type: str) -> str:
    file_type = file_type.lower()
    if "image" in file_type:
        return "image"
    if "spreadsheet" in file_type or "excel" in file_type:
        return "spreadsheet"
    if "presentation" in file_type or "powerpoint" in file_type:
        return "presentation"
    if "pdf" in file_type:
        return "pdf"
    return "file"


class DocumentResponse(BaseModel):
    id: str
    cohort_id: str
    uploaded_by: str
    title: str
    description: Optional[str] = None
    file_path: str
    file_type: str
    file_size: int
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def size_label(self) -> str:
        return format_file_size(self.file_size)

    @computed_field
    @property
    def kind(self) -> str:
        return file_kind(self.file_type)


class DownloadResponse(BaseModel):
    url: str
    expires_in: int
