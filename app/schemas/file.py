"""Pydantic schemas for uploaded files."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.db.models.file_record import FileStatus


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class FileRecordOut(CamelModel):
    """A file record as returned by the files API."""

    id: int
    filename: str
    original_name: str
    content_type: str
    size: int
    status: FileStatus
    session_id: str
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FileUploadResult(CamelModel):
    """Per-file admission result of an upload request."""

    filename: str
    success: bool
    file_id: Optional[int] = None
    error: Optional[str] = None


class FileUploadResponse(BaseModel):
    files: List[FileUploadResult] = Field(default_factory=list)
