"""Fakes and helpers shared by the tests."""

from typing import Any, Dict, List, Sequence

from jose import jwt

from app.core.config import settings
from app.core.errors import RemoteServiceError


class CharTokenizer:
    """One token per character; avoids downloading tiktoken encodings."""

    def encode(self, text: str) -> List[int]:
        return [ord(c) for c in text]

    def decode(self, tokens: Sequence[int]) -> str:
        return "".join(chr(t) for t in tokens)


class FakeVectorStore:
    """In-memory stand-in for VectorStoreService."""

    def __init__(self):
        self.entries: List[Dict[str, Any]] = []
        self.fail_add = False
        self.fail_delete = False
        self.delete_calls: List[tuple] = []

    async def add_chunks(self, chunks: List[str], metadata: Dict[str, Any]) -> List[str]:
        if self.fail_add:
            raise RemoteServiceError("Vector store call add failed: connection refused")
        ids = []
        for i, chunk in enumerate(chunks):
            memory_id = f"mem-{len(self.entries)}"
            self.entries.append({"id": memory_id, "memory": chunk,
                                 "metadata": {**metadata, "chunk_index": i}})
            ids.append(memory_id)
        return ids

    async def delete_by_metadata(self, key: str, value: Any) -> int:
        self.delete_calls.append((key, value))
        if self.fail_delete:
            raise RemoteServiceError("Vector store call delete failed: timed out")
        before = len(self.entries)
        self.entries = [e for e in self.entries if e["metadata"].get(key) != value]
        return before - len(self.entries)


class RecordingDispatcher:
    """Collects jobs instead of running them."""

    def __init__(self):
        self.jobs = []

    async def dispatch(self, jobs, background_tasks) -> None:
        self.jobs.extend(jobs)


def make_token(user_id: str = "user-a", role: str = "user") -> str:
    return jwt.encode({"sub": user_id, "username": f"{user_id}@example.com", "role": role},
                      settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHMS[0])


def auth_headers(user_id: str = "user-a", role: str = "user") -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}
