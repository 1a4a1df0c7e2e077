"""Metadata-store access for file records."""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.file_record import FileRecord, FileStatus
from app.db.models.ingested_document import IngestedDocument

logger = logging.getLogger(__name__)


class FileRecordService:
    """CRUD for :class:`FileRecord` rows."""

    def __init__(self, db_session: AsyncSession):
        """Initialize the service with a database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self.db = db_session

    async def create_file(
        self,
        owner_id: str,
        filename: str,
        original_name: str,
        content_type: str,
        size: int,
        session_id: str,
    ) -> FileRecord:
        """Create a file record in status ``processing`` and commit it."""
        try:
            record = FileRecord(
                filename=filename,
                original_name=original_name,
                content_type=content_type,
                size=size,
                session_id=session_id,
                owner_id=owner_id,
                status=FileStatus.PROCESSING,
            )
            self.db.add(record)
            await self.db.commit()
            await self.db.refresh(record)

            logger.info(f"Created file record {record.id} ({filename}) for user {owner_id}")
            return record

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error creating file record for {filename}: {str(e)}")
            raise

    async def get_file(self, file_id: int) -> Optional[FileRecord]:
        result = await self.db.execute(select(FileRecord).where(FileRecord.id == file_id))
        return result.scalars().first()

    async def list_files(self) -> List[FileRecord]:
        """All file records, newest first."""
        result = await self.db.execute(
            select(FileRecord).order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
        )
        return list(result.scalars().all())

    async def delete_file(self, record: FileRecord) -> None:
        """Delete a file record and its ingestion bookkeeping."""
        try:
            await self.db.execute(delete(IngestedDocument).where(IngestedDocument.file_id == record.id))
            await self.db.delete(record)
            await self.db.commit()
            logger.info(f"Deleted file record {record.id}")

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error deleting file record {record.id}: {str(e)}")
            raise

    async def get_ingested_document(self, file_id: int) -> Optional[IngestedDocument]:
        result = await self.db.execute(
            select(IngestedDocument).where(IngestedDocument.file_id == file_id)
        )
        return result.scalars().first()

    async def delete_ingested_documents(self, file_id: int) -> int:
        """Delete ingestion bookkeeping left behind for a file."""
        try:
            result = await self.db.execute(delete(IngestedDocument).where(IngestedDocument.file_id == file_id))
            await self.db.commit()
            return result.rowcount or 0

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error deleting ingestion bookkeeping for file {file_id}: {str(e)}")
            raise
