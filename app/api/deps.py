from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from jose.exceptions import JWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging

from app.core.config import settings
from app.core.constants import MODERATOR_ROLES
from app.core.errors import AuthError, PermissionDeniedError, ValidationError
from app.db.session import AsyncSessionLocal, get_async_session
from app.services.conversation.answering import AnsweringServiceClient
from app.services.ingestion.dispatcher import BackgroundDispatcher, CeleryDispatcher
from app.services.ingestion.file_service import FileService
from app.services.ingestion.indexer import ContentIndexer
from app.services.ingestion.orchestrator import IngestionOrchestrator
from app.services.vector_store import VectorStoreService

logger = logging.getLogger(__name__)

# Missing credentials are reported as AuthError rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_session_factory() -> async_sessionmaker:
    return AsyncSessionLocal


async def get_db(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with get_async_session(session_factory) as session:
        yield session


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Get the current authenticated user from the bearer JWT.

    Returns:
        User dict with ``id``, ``username`` and ``role``
    """
    if credentials is None:
        raise AuthError("Authentication required")
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=settings.JWT_ALGORITHMS,
        )
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise AuthError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid authentication credentials")
    return {
        "id": str(user_id),
        "username": payload.get("username") or str(user_id),
        "role": payload.get("role", "user"),
    }


async def require_moderator(current_user: dict = Depends(get_current_user)) -> dict:
    if current_user.get("role") not in MODERATOR_ROLES:
        raise PermissionDeniedError("Moderator access required")
    return current_user


def parse_record_id(raw_id: str, kind: str = "record") -> int:
    """Parse a numeric path id, raising a 400 for anything else."""
    if not (raw_id.isascii() and raw_id.isdigit()):
        raise ValidationError(f"Invalid {kind} id: {raw_id}")
    return int(raw_id)


def get_vector_store() -> VectorStoreService:
    return VectorStoreService()


def get_file_service() -> FileService:
    return FileService()


def get_indexer(vector_store: VectorStoreService = Depends(get_vector_store)) -> ContentIndexer:
    return ContentIndexer(vector_store)


def get_orchestrator(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    indexer: ContentIndexer = Depends(get_indexer),
    file_service: FileService = Depends(get_file_service),
) -> IngestionOrchestrator:
    return IngestionOrchestrator(session_factory, indexer, file_service)


def get_dispatcher(orchestrator: IngestionOrchestrator = Depends(get_orchestrator)):
    """Dispatcher for the configured ``INGESTION_BACKEND``."""
    if settings.INGESTION_BACKEND == "celery":
        return CeleryDispatcher(orchestrator)
    return BackgroundDispatcher(orchestrator)


def get_answering_client() -> AnsweringServiceClient:
    return AnsweringServiceClient()
