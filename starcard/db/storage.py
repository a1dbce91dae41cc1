"""
Key-value storage backends.

The card store only needs get/set/remove over string keys and string
values. Two implementations are provided: an in-memory dict for tests and
a SQLAlchemy table for durable local persistence.
"""

from typing import Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from starcard.models.db import StorageEntryDB
from starcard.models.failure import FailureKind, KnownError


class StorageReadError(Exception):
    """The backend could not be read. Callers recover locally."""


class StorageWriteError(KnownError):
    """
    Raised when the backend rejects a write.

    Recoverable: nothing was persisted and the caller may retry.
    """

    def __init__(self, key: str, detail: str | None = None):
        self.key = key
        super().__init__(
            kind=FailureKind.STORAGE_WRITE_FAILED,
            message="Your collection could not be saved.",
            detail=detail or f"Write to '{key}' failed",
            suggestion="Free up some space or try again in a moment.",
            status_code=503,
        )


class KeyValueStorage(Protocol):
    """Minimal string key-value storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Dict-backed storage for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class SqlStorage:
    """
    Storage backed by the storage_entries table.

    Each write runs in its own transaction, so a value is either fully
    replaced or left untouched.
    """

    def __init__(self, factory: sessionmaker[Session]) -> None:
        self._factory = factory

    def get_item(self, key: str) -> str | None:
        try:
            with self._factory() as session:
                entry = session.get(StorageEntryDB, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise StorageReadError(f"Read of '{key}' failed") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._factory.begin() as session:
                session.merge(StorageEntryDB(key=key, value=value))
        except SQLAlchemyError as e:
            raise StorageWriteError(key, detail=type(e).__name__) from e

    def remove_item(self, key: str) -> None:
        try:
            with self._factory.begin() as session:
                session.execute(delete(StorageEntryDB).where(StorageEntryDB.key == key))
        except SQLAlchemyError as e:
            raise StorageWriteError(key, detail=type(e).__name__) from e
