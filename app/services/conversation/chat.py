"""Routing of chat turns between the message store and the answering service."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import SESSION_NAMESPACE
from app.db.models.chat_message import ChatMessage, extract_correlation_id
from app.services.conversation.answering import AnsweringServiceClient
from app.services.conversation.service import ConversationService

logger = logging.getLogger(__name__)


def derive_session_id(account_id: str) -> str:
    """Stable session id for an account."""
    return str(uuid.uuid5(SESSION_NAMESPACE, f"session:{account_id}"))


class ChatService:
    """Persist a user turn, fetch the reply and persist it too."""

    def __init__(self, db_session: AsyncSession, answering_client: AnsweringServiceClient):
        self.conversations = ConversationService(db_session)
        self.answering_client = answering_client

    async def handle_turn(self, user_id: str, content: str) -> ChatMessage:
        """Handle one chat turn.

        The user message is committed before the remote call, so it survives
        a failed reply. Errors from the answering service propagate as
        :class:`RemoteServiceError` and no bot message is written.
        """
        session_id = derive_session_id(user_id)
        await self.conversations.add_message(user_id, session_id, content, is_bot=False)

        reply = await self.answering_client.ask(content, session_id)

        return await self.conversations.add_message(
            user_id,
            session_id,
            reply,
            is_bot=True,
            correlation_id=extract_correlation_id(reply),
        )
