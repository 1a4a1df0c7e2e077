from datetime import datetime, UTC
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class FileStatus(str, Enum):
    """Processing status of an uploaded file."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not FileStatus.PROCESSING


class FileRecord(Base):
    """Metadata for an uploaded file.

    Everything except ``status`` is fixed at upload time. ``status`` leaves
    ``processing`` exactly once, when ingestion finishes.
    """
    __tablename__ = "file_record"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(512), index=True)
    original_name: Mapped[str] = mapped_column(String(512))
    content_type: Mapped[str] = mapped_column(String(255))
    size: Mapped[int] = mapped_column(BigInteger, default=0)
    status: Mapped[FileStatus] = mapped_column(
        SQLEnum(FileStatus, values_callable=lambda x: [e.value for e in x], native_enum=False, length=20),
        default=FileStatus.PROCESSING,
        nullable=False,
        index=True,
    )
    session_id: Mapped[str] = mapped_column(String(64), index=True)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    @property
    def vector_key(self) -> str:
        """Source key the file's chunks carry in the vector store."""
        return make_vector_key(self.id, self.filename)

    def __repr__(self):
        return f"<FileRecord(id={self.id}, filename='{self.filename}', status='{self.status}')>"


def make_vector_key(file_id: int, filename: str) -> str:
    return f"{file_id}/{filename}"
