"""Ordered deletion across the vector store and the metadata store."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, PermissionDeniedError
from app.services.conversation.service import ConversationService
from app.services.ingestion.file_records import FileRecordService
from app.services.vector_store import VectorStoreService

logger = logging.getLogger(__name__)


@dataclass
class DeletionOutcome:
    """What a deletion actually removed.

    ``record`` holds the serialised row as it was before deletion.
    """

    metadata_deleted: bool = False
    vector_deleted: bool = False
    vector_entries_removed: int = 0
    record: Dict[str, Any] = field(default_factory=dict)


class DeletionCoordinator:
    """Delete vector content first, then metadata.

    Vector-store failures are logged and reported in the outcome; they never
    stop the metadata deletion. Metadata-store failures propagate.
    """

    def __init__(self, db_session: AsyncSession, vector_store: VectorStoreService):
        self.db = db_session
        self.vector_store = vector_store
        self.files = FileRecordService(db_session)
        self.conversations = ConversationService(db_session)

    async def delete_file(self, file_id: int) -> DeletionOutcome:
        record = await self.files.get_file(file_id)
        if record is None:
            raise NotFoundError("File not found")

        outcome = DeletionOutcome(record=record.to_dict())
        try:
            outcome.vector_entries_removed = await self.vector_store.delete_by_metadata(
                "source_key", record.vector_key
            )
            outcome.vector_deleted = True
        except Exception as e:
            logger.warning(f"Vector-store cleanup failed for file {file_id} ({record.vector_key}): {e}")

        await self.files.delete_file(record)
        outcome.metadata_deleted = True
        return outcome

    async def delete_message(self, message_id: int, requester_id: str) -> DeletionOutcome:
        message = await self.conversations.get_message(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message.owner_id != requester_id:
            raise PermissionDeniedError("You can only delete your own messages")

        outcome = DeletionOutcome(record=message.to_dict())
        correlation_id = message.resolve_correlation_id() if message.is_bot else None
        if correlation_id:
            try:
                outcome.vector_entries_removed = await self.vector_store.delete_by_metadata(
                    "msgid", correlation_id
                )
                outcome.vector_deleted = True
            except Exception as e:
                logger.warning(f"Vector-store cleanup failed for message {message_id} (msgid {correlation_id}): {e}")

        await self.conversations.delete_message(message)
        outcome.metadata_deleted = True
        return outcome
