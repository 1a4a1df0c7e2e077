"""Hand admitted ingestion jobs to whichever backend runs them."""

import asyncio
import logging
from typing import Sequence

from fastapi import BackgroundTasks

from app.services.ingestion.orchestrator import IngestionJob, IngestionOrchestrator

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    """Run jobs in-process after the response has been sent."""

    def __init__(self, orchestrator: IngestionOrchestrator):
        self.orchestrator = orchestrator

    async def dispatch(self, jobs: Sequence[IngestionJob], background_tasks: BackgroundTasks) -> None:
        if not jobs:
            return
        background_tasks.add_task(self.orchestrator.process_many, list(jobs))
        logger.info(f"Scheduled {len(jobs)} ingestion job(s) as background tasks")


class CeleryDispatcher:
    """Queue one Celery task per job.

    A job that cannot be queued is finalised as ``error`` right away so
    its file does not stay ``processing``.
    """

    def __init__(self, orchestrator: IngestionOrchestrator):
        self.orchestrator = orchestrator

    async def dispatch(self, jobs: Sequence[IngestionJob], background_tasks: BackgroundTasks) -> None:
        from app.worker.tasks.file_tasks import process_uploaded_file

        for job in jobs:
            try:
                task = await asyncio.to_thread(process_uploaded_file.delay, job.model_dump())
                logger.info(f"Queued file {job.file_id} as task {task.id}")
            except Exception as e:
                logger.error(f"Error queueing file {job.file_id}: {e}")
                await self.orchestrator.fail(job, "could not queue file for processing")
