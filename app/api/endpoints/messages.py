import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_vector_store, parse_record_id
from app.core.errors import AppError
from app.schemas.chat import ChatMessageOut
from app.services.conversation.chat import derive_session_id
from app.services.conversation.service import ConversationService
from app.services.deletion import DeletionCoordinator
from app.services.vector_store import VectorStoreService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[ChatMessageOut])
async def list_messages(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Messages of the caller's session, oldest first."""
    try:
        user_id = current_user["id"]
        return await ConversationService(db).get_session_messages(derive_session_id(user_id), owner_id=user_id)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error listing messages: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing messages: {str(e)}")


@router.delete("/{message_id}", response_model=ChatMessageOut)
async def delete_message(
    message_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vector_store: VectorStoreService = Depends(get_vector_store),
):
    """Delete one of the caller's messages and any content indexed for it."""
    record_id = parse_record_id(message_id, "message")
    try:
        outcome = await DeletionCoordinator(db, vector_store).delete_message(record_id, current_user["id"])
        return ChatMessageOut.model_validate(outcome.record)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error deleting message {record_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting message: {str(e)}")
