"""Feedback API endpoint."""

from fastapi import APIRouter, Depends, HTTPException
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import AppError
from app.schemas.feedback import FeedbackCreate, FeedbackOut
from app.services.conversation.chat import derive_session_id
from app.services.conversation.feedback import FeedbackService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=FeedbackOut, status_code=201)
async def submit_feedback(
    request: FeedbackCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rate the assistant; the entry is tied to the caller's session."""
    try:
        return await FeedbackService(db).add_feedback(
            user_id=current_user["id"],
            session_id=derive_session_id(current_user["id"]),
            rating=request.rating,
            comment=request.comment,
        )
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error storing feedback: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error storing feedback: {str(e)}")
