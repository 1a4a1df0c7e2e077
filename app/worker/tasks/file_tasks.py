"""Celery tasks for file ingestion."""

import asyncio
import logging

from sqlalchemy.exc import OperationalError

from app.worker import celery_app
from app.db.session import AsyncSessionLocal
from app.services.ingestion.file_service import FileService
from app.services.ingestion.indexer import ContentIndexer
from app.services.ingestion.orchestrator import IngestionJob, IngestionOrchestrator
from app.services.vector_store import VectorStoreService

logger = logging.getLogger(__name__)


def build_orchestrator() -> IngestionOrchestrator:
    return IngestionOrchestrator(
        session_factory=AsyncSessionLocal,
        indexer=ContentIndexer(VectorStoreService()),
        file_service=FileService(),
    )


# One loop per worker process; the async engine pool is bound to it
_loop: asyncio.AbstractEventLoop | None = None


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


@celery_app.task(name="process_uploaded_file", bind=True, max_retries=3, default_retry_delay=10)
def process_uploaded_file(self, job: dict) -> dict:
    """Run ingestion for one admitted file.

    Args:
        job: Serialised :class:`IngestionJob`

    Returns:
        Summary of the outcome
    """
    ingestion_job = IngestionJob.model_validate(job)
    logger.info(f"Starting ingestion task for file {ingestion_job.file_id} ({ingestion_job.filename})")

    orchestrator = build_orchestrator()
    loop = _get_loop()

    try:
        outcome = loop.run_until_complete(orchestrator.process(ingestion_job))
    except OperationalError as e:
        if self.request.retries >= self.max_retries:
            logger.error(f"Giving up on file {ingestion_job.file_id} after {self.request.retries} retries: {e}")
            raise
        logger.warning(f"Database unavailable while ingesting file {ingestion_job.file_id}, retrying: {e}")
        raise self.retry(exc=e)

    logger.info(f"Completed ingestion task for file {ingestion_job.file_id}")
    return {
        "file_id": outcome.file_id,
        "status": outcome.status.value if outcome.status else None,
        "message_id": outcome.message_id,
        "skipped": outcome.skipped,
    }
