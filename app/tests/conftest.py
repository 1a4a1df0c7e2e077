"""Test fixtures for the application."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.db.base_class import Base
import app.db.models  # noqa: F401
from app.services.ingestion.chunking import DocumentChunker
from app.services.ingestion.file_service import FileService
from app.services.ingestion.indexer import ContentIndexer
from app.services.ingestion.orchestrator import IngestionOrchestrator
from app.tests.helpers import CharTokenizer, FakeVectorStore


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def vector_store():
    return FakeVectorStore()


@pytest.fixture
def file_service(tmp_path):
    return FileService(data_dir=str(tmp_path / "data"))


@pytest.fixture
def indexer(vector_store):
    chunker = DocumentChunker(chunk_size=200, chunk_overlap=20, tokenizer=CharTokenizer())
    return ContentIndexer(vector_store, chunker=chunker)


@pytest.fixture
def orchestrator(session_factory, indexer, file_service):
    return IngestionOrchestrator(session_factory, indexer, file_service)


@pytest.fixture
def answering_client():
    """Stand-in answering client; tests set ``ask`` behaviour."""
    client = AsyncMock()
    client.ask.return_value = "Here is your answer."
    return client


@pytest_asyncio.fixture
async def api_client(session_factory, vector_store, indexer, file_service, answering_client):
    """HTTP client for the app with external services replaced."""
    from app.api import deps
    from app.main import app

    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    app.dependency_overrides[deps.get_vector_store] = lambda: vector_store
    app.dependency_overrides[deps.get_file_service] = lambda: file_service
    app.dependency_overrides[deps.get_indexer] = lambda: indexer
    app.dependency_overrides[deps.get_answering_client] = lambda: answering_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
