"""Mem0 service for the document vector store."""

import asyncio
import logging
import weakref
from functools import wraps
from typing import Any, Dict, List, Optional

from mem0 import MemoryClient

from app.core.config import settings
from app.core.errors import RemoteServiceError

logger = logging.getLogger(__name__)

# Module-level singleton client to prevent initialization issues
_mem0_client = None
# One lock per event loop; serialises access to the blocking client
_mem0_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()

# Upper bound on get_all/delete rounds for a single filter
MAX_DELETE_ROUNDS = 50
PAGE_SIZE = 100


def get_mem0_client() -> MemoryClient:
    """Get or create the singleton Mem0 client."""
    global _mem0_client
    if _mem0_client is None:
        if not settings.MEM0_API_KEY:
            raise RemoteServiceError("Vector store is not configured (MEM0_API_KEY missing)")
        logger.info("Initializing Mem0 client...")
        try:
            _mem0_client = MemoryClient(api_key=settings.MEM0_API_KEY)
        except Exception as e:
            raise RemoteServiceError(f"Failed to initialize vector store client: {e}") from e
        logger.info("Initialized Mem0 singleton client")
    return _mem0_client


def _get_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    # Contended locks keep their loop alive; drop closed ones
    for stale in [other for other in list(_mem0_locks) if other.is_closed()]:
        _mem0_locks.pop(stale, None)
    lock = _mem0_locks.get(loop)
    if lock is None:
        lock = _mem0_locks[loop] = asyncio.Lock()
    return lock


# Helper to convert sync operations to async (for API compatibility)
def async_wrap(func):
    """Wraps a synchronous function to be called asynchronously."""
    @wraps(func)
    async def run(*args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))
    return run


class VectorStoreService:
    """Service for writing and deleting document chunks in Mem0.

    All entries live under one namespace (``settings.VECTOR_NAMESPACE``) so the
    knowledge base is shared across users. Entries are found again through
    their metadata: ``source_key`` for file chunks and ``msgid`` for content the
    answering service indexed for a reply.

    Unlike lookups, writes and deletes raise :class:`RemoteServiceError` on
    failure; callers decide whether the failure is fatal.
    """

    def __init__(self, client: Optional[MemoryClient] = None, namespace: Optional[str] = None,
                 timeout: Optional[float] = None):
        self._client = client
        self.namespace = namespace or settings.VECTOR_NAMESPACE
        self.timeout = timeout or settings.VECTOR_STORE_TIMEOUT

    @property
    def client(self) -> MemoryClient:
        if self._client is None:
            self._client = get_mem0_client()
        return self._client

    async def _call(self, func, *args, **kwargs) -> Any:
        name = getattr(func, "__name__", "request")
        async with _get_lock():
            try:
                return await asyncio.wait_for(async_wrap(func)(*args, **kwargs), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                raise RemoteServiceError(f"Vector store call {name} timed out") from e
            except RemoteServiceError:
                raise
            except Exception as e:
                raise RemoteServiceError(f"Vector store call {name} failed: {e}") from e

    async def add_chunks(self, chunks: List[str], metadata: Dict[str, Any]) -> List[str]:
        """Store text chunks, tagging each with ``metadata`` plus its index.

        Returns:
            Memory ids of the stored chunks
        """
        memory_ids = []
        total = len(chunks)
        for i, chunk in enumerate(chunks):
            chunk_metadata = {**metadata, "chunk_index": i, "total_chunks": total}
            messages = [{"role": "user", "content": chunk.strip()}]
            raw_result = await self._call(
                self.client.add,
                messages,
                user_id=self.namespace,
                metadata=chunk_metadata,
                infer=False,  # Store chunks verbatim
                version="v2",
                output_format="v1.1",
            )
            memory_id = self._extract_memory_id(raw_result)
            if memory_id:
                memory_ids.append(memory_id)
        logger.info(f"Stored {total} chunks for {metadata.get('source_key') or metadata}")
        return memory_ids

    async def find_by_metadata(self, key: str, value: Any) -> List[Dict[str, Any]]:
        """Return one page of memories whose metadata ``key`` equals ``value``."""
        filters = {"user_id": self.namespace, f"metadata.{key}": value}
        raw_results = await self._call(
            self.client.get_all,
            filters=filters,
            version="v2",
            page_size=PAGE_SIZE,
            page=1,
        )
        if isinstance(raw_results, dict) and "results" in raw_results:
            raw_results = raw_results["results"]
        if not isinstance(raw_results, list):
            raise RemoteServiceError(f"Unexpected result format from vector store: {type(raw_results).__name__}")
        return [memory for memory in raw_results if isinstance(memory, dict)]

    async def delete_by_metadata(self, key: str, value: Any) -> int:
        """Delete every memory whose metadata ``key`` equals ``value``.

        Returns:
            Number of memories deleted
        """
        deleted = 0
        for _ in range(MAX_DELETE_ROUNDS):
            memories = await self.find_by_metadata(key, value)
            ids = [m.get("id") or m.get("memory_id") for m in memories]
            ids = [memory_id for memory_id in ids if memory_id]
            if not ids:
                break
            for memory_id in ids:
                await self._call(self.client.delete, memory_id=memory_id)
                deleted += 1
        else:
            logger.warning(f"Stopped deleting {key}={value} after {MAX_DELETE_ROUNDS} rounds")
        logger.info(f"Deleted {deleted} vector entries with {key}={value}")
        return deleted

    @staticmethod
    def _extract_memory_id(raw_result: Any) -> Optional[str]:
        # v2 responses wrap results as {"results": [...]}
        if isinstance(raw_result, dict):
            if raw_result.get("results"):
                raw_result = raw_result["results"][0]
            return raw_result.get("id") or raw_result.get("memory_id")
        if isinstance(raw_result, list) and raw_result and isinstance(raw_result[0], dict):
            return raw_result[0].get("id") or raw_result[0].get("memory_id")
        return None
