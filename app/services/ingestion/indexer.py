"""Content extraction and indexing into the vector store."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.core.errors import ExtractionError
from app.services.ingestion.chunking import DocumentChunker
from app.services.ingestion.parsers import parse_file
from app.services.vector_store import VectorStoreService

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    """What indexing one file produced."""

    vector_key: str
    chunk_count: int
    memory_ids: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class ContentIndexer:
    """Parse file bytes, chunk the text and upsert the chunks.

    Every fault, including vector-store failures, surfaces as
    :class:`ExtractionError`.
    """

    def __init__(self, vector_store: VectorStoreService, chunker: Optional[DocumentChunker] = None):
        self.vector_store = vector_store
        self.chunker = chunker or DocumentChunker()

    async def index(self, data: bytes, content_type: str, filename: str, vector_key: str,
                    extra_metadata: Optional[Dict[str, Any]] = None) -> IndexResult:
        # Parsing is CPU-bound; keep it off the event loop
        content, parsed_metadata = await asyncio.to_thread(parse_file, data, content_type, filename)
        chunks = await asyncio.to_thread(self.chunker.chunk_document, content)
        if not chunks:
            raise ExtractionError("Document produced no indexable chunks")
        logger.info(f"Created {len(chunks)} chunks from {filename}")

        metadata = {
            **(extra_metadata or {}),
            "source_key": vector_key,
            "filename": filename,
            "content_type": content_type,
        }
        try:
            memory_ids = await self.vector_store.add_chunks(chunks, metadata)
        except Exception as e:
            raise ExtractionError(f"Indexing failed: {e}") from e

        return IndexResult(
            vector_key=vector_key,
            chunk_count=len(chunks),
            memory_ids=memory_ids,
            metadata=parsed_metadata,
        )
