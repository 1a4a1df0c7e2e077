import logging
from typing import List, Optional

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.chat_message import ChatMessage
from app.db.models.file_record import FileRecord

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for storing and reading chat messages."""

    def __init__(self, db_session: AsyncSession):
        """Initialize the service with a database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self.db = db_session

    async def add_message(
        self,
        owner_id: str,
        session_id: str,
        content: str,
        is_bot: bool = False,
        file_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> ChatMessage:
        """Add a message to a session and commit it.

        Args:
            owner_id: ID of the user the message belongs to
            session_id: Conversation grouping key
            content: Message text
            is_bot: Whether the bot authored the message
            file_id: File the message reports on, if any
            correlation_id: Vector-store correlation id of a bot reply

        Returns:
            The created message
        """
        try:
            message = ChatMessage(
                owner_id=owner_id,
                session_id=session_id,
                content=content,
                is_bot=is_bot,
                file_id=file_id,
                correlation_id=correlation_id,
            )
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)

            logger.info(f"Added {'bot' if is_bot else 'user'} message {message.id} to session {session_id}")
            return message

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error adding message to session {session_id}: {str(e)}")
            raise

    async def get_message(self, message_id: int) -> Optional[ChatMessage]:
        result = await self.db.execute(select(ChatMessage).where(ChatMessage.id == message_id))
        return result.scalars().first()

    async def get_session_messages(
        self,
        session_id: str,
        owner_id: Optional[str] = None,
    ) -> List[ChatMessage]:
        """Messages of a session, oldest first.

        File-outcome messages whose file has been deleted are left out.
        """
        query = self._visible_messages().where(ChatMessage.session_id == session_id)
        if owner_id is not None:
            query = query.where(ChatMessage.owner_id == owner_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_all_messages(self) -> List[ChatMessage]:
        """Messages of every session, oldest first."""
        result = await self.db.execute(self._visible_messages())
        return list(result.scalars().all())

    @staticmethod
    def _visible_messages() -> Select:
        # File-outcome messages of deleted files are hidden
        return (
            select(ChatMessage)
            .outerjoin(FileRecord, ChatMessage.file_id == FileRecord.id)
            .where(or_(ChatMessage.file_id.is_(None), FileRecord.id.is_not(None)))
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )

    async def get_session_ids(self) -> List[str]:
        """Distinct session ids that have messages."""
        result = await self.db.execute(
            select(ChatMessage.session_id).distinct().order_by(ChatMessage.session_id)
        )
        return list(result.scalars().all())

    async def delete_message(self, message: ChatMessage) -> None:
        try:
            await self.db.delete(message)
            await self.db.commit()
            logger.info(f"Deleted message {message.id}")

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error deleting message {message.id}: {str(e)}")
            raise
