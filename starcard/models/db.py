"""
SQLAlchemy ORM models for persistent storage.

The application persists through a flat key-value table, mirroring the
browser local storage the card list was designed around.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class StorageEntryDB(Base):
    """
    A single key-value entry.

    The value is an opaque string; the card store keeps a JSON array here.
    """

    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StorageEntryDB(key={self.key}, size={len(self.value)})>"
