"""Pydantic schemas for chat messages."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.file import CamelModel


class ChatRequest(BaseModel):
    """Body of a chat turn."""

    content: str = Field(..., min_length=1, max_length=10000, description="User message text")

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content must not be blank")
        return v


class ChatMessageOut(CamelModel):
    id: int
    content: str
    is_bot: bool
    session_id: str
    owner_id: str
    created_at: Optional[datetime] = None
    file_id: Optional[int] = None
    correlation_id: Optional[str] = None
