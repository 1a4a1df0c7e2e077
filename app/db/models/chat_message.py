from datetime import datetime, UTC
import re
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base

# Marker the answering service embeds in replies whose content it indexed
CORRELATION_MARKER = re.compile(r"MSGID:\s*([a-f0-9-]+)", re.IGNORECASE)


def extract_correlation_id(content: Optional[str]) -> Optional[str]:
    """Return the ``MSGID:`` correlation id embedded in message text, if any."""
    if not content:
        return None
    match = CORRELATION_MARKER.search(content)
    return match.group(1) if match else None


class ChatMessage(Base):
    """Chat message model."""
    __tablename__ = "chat_message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text)
    is_bot: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    session_id: Mapped[str] = mapped_column(String(64), index=True)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True)

    # Weak reference: no foreign key, the row may outlive the file
    file_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    # Vector-store correlation id parsed from the reply when it was stored
    correlation_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, session_id='{self.session_id}', is_bot={self.is_bot})>"

    def resolve_correlation_id(self) -> Optional[str]:
        """Stored correlation id, falling back to the marker in the content.

        Rows written before the column existed only carry the marker.
        """
        return self.correlation_id or extract_correlation_id(self.content)
