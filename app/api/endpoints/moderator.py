import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_moderator
from app.core.errors import AppError
from app.schemas.chat import ChatMessageOut
from app.schemas.feedback import FeedbackOut
from app.services.conversation.feedback import FeedbackService
from app.services.conversation.service import ConversationService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/sessions")
async def list_sessions(
    moderator: dict = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, List[str]]:
    """Session ids that have at least one message."""
    try:
        return {"sessions": await ConversationService(db).get_session_ids()}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error listing sessions: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing sessions: {str(e)}")


@router.get("/sessions/{session_id}/messages", response_model=List[ChatMessageOut])
async def session_messages(
    session_id: str,
    moderator: dict = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    try:
        logger.info(f"Moderator {moderator['id']} reading session {session_id}")
        return await ConversationService(db).get_session_messages(session_id)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error reading session {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error reading session: {str(e)}")


@router.get("/messages/all", response_model=List[ChatMessageOut])
async def all_messages(
    moderator: dict = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    """Messages of every session, oldest first."""
    try:
        return await ConversationService(db).get_all_messages()
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error listing messages: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing messages: {str(e)}")


@router.get("/feedback", response_model=List[FeedbackOut])
async def all_feedback(
    moderator: dict = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await FeedbackService(db).list_feedback()
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error listing feedback: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing feedback: {str(e)}")


@router.get("/feedback/session/{session_id}", response_model=List[FeedbackOut])
async def session_feedback(
    session_id: str,
    moderator: dict = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await FeedbackService(db).list_feedback(session_id=session_id)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error reading feedback for session {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error reading feedback: {str(e)}")


@router.get("/feedback/user/{user_id}", response_model=List[FeedbackOut])
async def user_feedback(
    user_id: str,
    moderator: dict = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await FeedbackService(db).list_feedback(user_id=user_id)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error reading feedback of user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error reading feedback: {str(e)}")
