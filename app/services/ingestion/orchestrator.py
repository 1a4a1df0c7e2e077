"""Ingestion orchestration: admission, background processing and outcome messages.

A file moves ``processing -> completed | error`` exactly once. The status
change and the bot message announcing it are committed in one transaction,
guarded by ``WHERE status = 'processing'``, so a retried or duplicated job can
never announce the same file twice.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.constants import MAX_FAILURE_REASON_LENGTH
from app.db.models.chat_message import ChatMessage
from app.db.models.file_record import FileRecord, FileStatus, make_vector_key
from app.db.models.ingested_document import IngestedDocument
from app.services.ingestion.file_records import FileRecordService
from app.services.ingestion.file_service import FileService
from app.services.ingestion.indexer import ContentIndexer, IndexResult
from app.services.ingestion.validator import normalize_filename, validate_content_type

logger = logging.getLogger(__name__)


class IngestionJob(BaseModel):
    """Unit of background work for one admitted file.

    Plain JSON types only, so a job can be handed to a Celery worker.
    """

    file_id: int
    staged_path: str
    filename: str
    content_type: str
    size: int
    session_id: str
    owner_id: str


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    data: bytes


@dataclass
class FileAdmission:
    """Synchronous per-file result of an upload batch."""

    filename: str
    accepted: bool
    file_id: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class IngestionOutcome:
    file_id: int
    status: Optional[FileStatus] = None
    message_id: Optional[int] = None
    skipped: bool = False


def describe_failure(exc: BaseException) -> str:
    """Bounded, single-line description of a failure for users."""
    text = str(exc).strip()
    text = text.splitlines()[0].strip() if text else ""
    if not text:
        text = type(exc).__name__
    if len(text) > MAX_FAILURE_REASON_LENGTH:
        text = text[: MAX_FAILURE_REASON_LENGTH - 3] + "..."
    return text


class IngestionOrchestrator:
    """Coordinate validator, metadata store and indexer for uploaded files."""

    def __init__(self, session_factory: async_sessionmaker, indexer: ContentIndexer,
                 file_service: FileService):
        self.session_factory = session_factory
        self.indexer = indexer
        self.file_service = file_service

    async def admit_batch(
        self,
        uploads: Sequence[UploadedFile],
        owner_id: str,
        session_id: str,
    ) -> Tuple[List[FileAdmission], List[IngestionJob]]:
        """Validate uploads, stage accepted ones and create their records.

        Each upload is admitted independently; the returned jobs still need
        to be dispatched.
        """
        admissions: List[FileAdmission] = []
        jobs: List[IngestionJob] = []

        async with self.session_factory() as db:
            records = FileRecordService(db)
            for upload in uploads:
                filename = normalize_filename(upload.filename)
                verdict = validate_content_type(upload.content_type)
                if not verdict.accepted:
                    logger.info(f"Rejected {filename}: {verdict.reason}")
                    admissions.append(FileAdmission(filename=filename, accepted=False, reason=verdict.reason))
                    continue

                try:
                    staged_path = await asyncio.to_thread(
                        self.file_service.stage, upload.data, upload.content_type
                    )
                except OSError as e:
                    logger.error(f"Error staging {filename}: {e}")
                    admissions.append(FileAdmission(filename=filename, accepted=False,
                                                    reason="Failed to store uploaded file"))
                    continue

                try:
                    record = await records.create_file(
                        owner_id=owner_id,
                        filename=filename,
                        original_name=filename,
                        content_type=upload.content_type,
                        size=len(upload.data),
                        session_id=session_id,
                    )
                except Exception as e:
                    logger.error(f"Error creating file record for {filename}: {e}")
                    self.file_service.remove(staged_path)
                    admissions.append(FileAdmission(filename=filename, accepted=False,
                                                    reason="Failed to create file record"))
                    continue

                admissions.append(FileAdmission(filename=filename, accepted=True, file_id=record.id))
                jobs.append(IngestionJob(
                    file_id=record.id,
                    staged_path=staged_path,
                    filename=filename,
                    content_type=upload.content_type,
                    size=len(upload.data),
                    session_id=session_id,
                    owner_id=owner_id,
                ))

        return admissions, jobs

    async def process(self, job: IngestionJob) -> IngestionOutcome:
        """Run one job end to end: extract, index, finalise, clean up.

        Safe to call again for the same job; a file that already left
        ``processing`` (or no longer exists) is skipped.
        """
        async with self.session_factory() as db:
            records = FileRecordService(db)
            record = await records.get_file(job.file_id)
            already_indexed = (
                record is not None
                and not record.status.is_terminal
                and await records.get_ingested_document(job.file_id) is not None
            )

        if record is None or record.status.is_terminal:
            logger.info(f"Skipping file {job.file_id}: {'deleted' if record is None else record.status.value}")
            self.file_service.remove(job.staged_path)
            return IngestionOutcome(file_id=job.file_id, status=record.status if record else None, skipped=True)

        if already_indexed:
            # An earlier attempt indexed the file but never finalised it
            logger.info(f"File {job.file_id} already indexed; finalising without re-indexing")
            status, content = FileStatus.COMPLETED, f"File processed successfully: {job.filename}"
        else:
            logger.info(f"Processing file {job.file_id} ({job.filename}, {job.content_type})")
            status, content = await self._extract_and_index(job)

        message_id = await self._finalize(job, status, content)
        if message_id is None and status is FileStatus.COMPLETED:
            await self._discard_if_deleted(job)
        self.file_service.remove(job.staged_path)

        return IngestionOutcome(
            file_id=job.file_id,
            status=status,
            message_id=message_id,
            skipped=message_id is None,
        )

    async def process_many(self, jobs: Sequence[IngestionJob]) -> List[IngestionOutcome]:
        """Process jobs concurrently; one failing job does not affect the rest."""
        results = await asyncio.gather(*(self.process(job) for job in jobs), return_exceptions=True)
        outcomes = []
        for job, result in zip(jobs, results):
            if isinstance(result, BaseException):
                logger.error(f"Ingestion of file {job.file_id} aborted: {result}", exc_info=result)
                continue
            outcomes.append(result)
        return outcomes

    async def fail(self, job: IngestionJob, reason: str) -> Optional[int]:
        """Finalise a job as ``error`` without processing it."""
        message_id = await self._finalize(
            job, FileStatus.ERROR, f"Error processing file {job.filename}: {reason}"
        )
        self.file_service.remove(job.staged_path)
        return message_id

    async def _extract_and_index(self, job: IngestionJob) -> Tuple[FileStatus, str]:
        try:
            data = await asyncio.to_thread(self.file_service.read, job.staged_path)
            result = await self.indexer.index(
                data,
                job.content_type,
                job.filename,
                make_vector_key(job.file_id, job.filename),
                extra_metadata={"file_id": job.file_id, "session_id": job.session_id},
            )
        except Exception as e:
            logger.error(f"Error processing file {job.file_id} ({job.filename}): {e}", exc_info=True)
            return FileStatus.ERROR, f"Error processing file {job.filename}: {describe_failure(e)}"

        # Indexing succeeded; bookkeeping trouble must not demote it to error
        try:
            await self._record_ingestion(job, data, result)
        except Exception as e:
            logger.error(f"Index bookkeeping failed for file {job.file_id}: {e}")
            return FileStatus.COMPLETED, f"File processed but index bookkeeping failed: {job.filename}"

        return FileStatus.COMPLETED, f"File processed successfully: {job.filename}"

    async def _record_ingestion(self, job: IngestionJob, data: bytes, result: IndexResult) -> None:
        async with self.session_factory() as db:
            try:
                db.add(IngestedDocument(
                    file_id=job.file_id,
                    filename=job.filename,
                    vector_key=result.vector_key,
                    chunk_count=result.chunk_count,
                    memory_ids=result.memory_ids,
                    document_hash=FileService.calculate_hash(data),
                    user_id=job.owner_id,
                    content_type=job.content_type,
                    size_bytes=job.size,
                    document_metadata=result.metadata,
                ))
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def _finalize(self, job: IngestionJob, status: FileStatus, content: str) -> Optional[int]:
        """Set the terminal status and add the outcome message atomically.

        Returns:
            The outcome message id, or None if the file was not ``processing``
        """
        async with self.session_factory() as db:
            try:
                result = await db.execute(
                    update(FileRecord)
                    .where(FileRecord.id == job.file_id)
                    .where(FileRecord.status == FileStatus.PROCESSING)
                    .values(status=status, updated_at=datetime.now(UTC))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    await db.rollback()
                    logger.warning(f"File {job.file_id} was not processing; outcome '{status.value}' dropped")
                    return None

                message = ChatMessage(
                    owner_id=job.owner_id,
                    session_id=job.session_id,
                    content=content,
                    is_bot=True,
                    file_id=job.file_id,
                )
                db.add(message)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(f"File {job.file_id} finalised as {status.value} (message {message.id})")
        return message.id

    async def _discard_if_deleted(self, job: IngestionJob) -> None:
        """Remove vectors and bookkeeping written for a file deleted mid-processing."""
        async with self.session_factory() as db:
            records = FileRecordService(db)
            if await records.get_file(job.file_id) is not None:
                return

            vector_key = make_vector_key(job.file_id, job.filename)
            try:
                removed = await self.indexer.vector_store.delete_by_metadata("source_key", vector_key)
                logger.info(f"Removed {removed} vector entries of deleted file {job.file_id}")
            except Exception as e:
                logger.warning(f"Could not remove vector entries of deleted file {job.file_id}: {e}")

            await records.delete_ingested_documents(job.file_id)
