"""Pydantic schemas for API endpoints and data validation."""

from app.schemas.chat import ChatMessageOut, ChatRequest
from app.schemas.feedback import FeedbackCreate, FeedbackOut
from app.schemas.file import FileRecordOut, FileUploadResponse, FileUploadResult

__all__ = [
    "ChatMessageOut",
    "ChatRequest",
    "FeedbackCreate",
    "FeedbackOut",
    "FileRecordOut",
    "FileUploadResponse",
    "FileUploadResult",
]
