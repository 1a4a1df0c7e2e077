import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_vector_store, parse_record_id
from app.core.errors import AppError
from app.schemas.file import FileRecordOut
from app.services.deletion import DeletionCoordinator
from app.services.ingestion.file_records import FileRecordService
from app.services.vector_store import VectorStoreService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[FileRecordOut])
async def list_files(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List every file in the shared knowledge base, newest first."""
    try:
        return await FileRecordService(db).list_files()
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error listing files: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error listing files: {str(e)}")


@router.delete("/{file_id}", response_model=FileRecordOut)
async def delete_file(
    file_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vector_store: VectorStoreService = Depends(get_vector_store),
):
    """
    Delete a file and its indexed content.

    The record is removed even if the vector store cannot be cleaned up.
    """
    record_id = parse_record_id(file_id, "file")
    try:
        outcome = await DeletionCoordinator(db, vector_store).delete_file(record_id)
        if not outcome.vector_deleted:
            logger.warning(f"File {record_id} deleted by {current_user['id']} with vector content left behind")
        return FileRecordOut.model_validate(outcome.record)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error deleting file {record_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting file: {str(e)}")
