"""Chat API endpoint."""

from fastapi import APIRouter, Depends, HTTPException
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_answering_client, get_current_user, get_db
from app.core.errors import AppError
from app.schemas.chat import ChatMessageOut, ChatRequest
from app.services.conversation.answering import AnsweringServiceClient
from app.services.conversation.chat import ChatService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=ChatMessageOut)
async def chat(
    request: ChatRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    answering_client: AnsweringServiceClient = Depends(get_answering_client),
):
    """
    Send a message and get the bot reply.

    The user message is stored even when no reply can be obtained.
    """
    try:
        return await ChatService(db, answering_client).handle_turn(current_user["id"], request.content)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error in chat endpoint: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error processing message: {str(e)}")
