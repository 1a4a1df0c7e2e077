"""Ingestion services for validating, indexing and tracking uploaded files."""

from app.services.ingestion.file_service import FileService
from app.services.ingestion.chunking import DocumentChunker
from app.services.ingestion.parsers import parse_file
from app.services.ingestion.indexer import ContentIndexer
from app.services.ingestion.orchestrator import (
    FileAdmission,
    IngestionJob,
    IngestionOrchestrator,
    UploadedFile,
)

__all__ = [
    "FileService",
    "DocumentChunker",
    "parse_file",
    "ContentIndexer",
    "FileAdmission",
    "IngestionJob",
    "IngestionOrchestrator",
    "UploadedFile",
]
