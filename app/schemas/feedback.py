"""Pydantic schemas for user feedback."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.file import CamelModel


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, max_length=5000)

    @field_validator("comment")
    @classmethod
    def blank_comment_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class FeedbackOut(CamelModel):
    id: int
    user_id: str
    session_id: Optional[str] = None
    comment: Optional[str] = None
    rating: int
    created_at: Optional[datetime] = None
