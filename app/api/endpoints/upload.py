import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile

from app.api.deps import get_current_user, get_dispatcher, get_orchestrator
from app.core.errors import AppError
from app.schemas.file import FileUploadResponse, FileUploadResult
from app.services.conversation.chat import derive_session_id
from app.services.ingestion.orchestrator import IngestionOrchestrator, UploadedFile
from app.services.ingestion.validator import check_batch

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=FileUploadResponse)
async def upload_files(
    background_tasks: BackgroundTasks,
    files: Optional[List[UploadFile]] = File(None),
    session_id: Optional[str] = Form(None, alias="sessionId"),
    current_user: dict = Depends(get_current_user),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    dispatcher=Depends(get_dispatcher),
):
    """
    Upload files for ingestion into the knowledge base.

    Each file is admitted or rejected on its own. Accepted files are listed
    with status ``processing`` before this returns; extraction runs
    afterwards and reports back through a bot message in the caller's
    session.
    """
    try:
        files = files or []
        check_batch([upload.size or 0 for upload in files])

        user_id = current_user["id"]
        server_session_id = derive_session_id(user_id)
        if session_id and session_id != server_session_id:
            logger.warning(f"Ignoring client session id {session_id} for user {user_id}")

        uploads = []
        for upload in files:
            uploads.append(UploadedFile(
                filename=upload.filename,
                content_type=upload.content_type,
                data=await upload.read(),
            ))
        check_batch([len(upload.data) for upload in uploads])

        admissions, jobs = await orchestrator.admit_batch(uploads, user_id, server_session_id)
        await dispatcher.dispatch(jobs, background_tasks)

        return FileUploadResponse(files=[
            FileUploadResult(
                filename=admission.filename,
                success=admission.accepted,
                file_id=admission.file_id,
                error=admission.reason,
            )
            for admission in admissions
        ])

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error handling upload: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error handling upload: {str(e)}")
