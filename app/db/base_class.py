"""
Base class for SQLAlchemy models.
"""
from datetime import datetime
from typing import Any

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate table name from class name in snake_case."""
        return "".join(
            "_" + c.lower() if c.isupper() else c
            for c in cls.__name__
        ).lstrip("_")

    def to_dict(self) -> dict[str, Any]:
        """Return column values as a JSON-friendly dict."""
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif hasattr(value, "value"):
                value = value.value
            result[column.key] = value
        return result
