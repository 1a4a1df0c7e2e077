"""IngestedDocument model for tracking documents indexed into the vector store."""

from datetime import datetime
from typing import List, Dict, Any, Optional
import uuid

from sqlalchemy import String, Integer, BigInteger, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class IngestedDocument(Base):
    """Bookkeeping for a file whose chunks reached the vector store.

    Written after indexing succeeds and removed together with the file record.
    """

    __tablename__ = "ingested_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_id: Mapped[int] = mapped_column(Integer, index=True, unique=True)
    filename: Mapped[str] = mapped_column(String(512), index=True)
    vector_key: Mapped[str] = mapped_column(String(600), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    chunk_count: Mapped[int] = mapped_column(Integer, default=0)
    memory_ids: Mapped[List[str]] = mapped_column(JSON, default=list)

    document_hash: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    content_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    document_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, default=dict, nullable=True)
