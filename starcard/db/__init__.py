from starcard.db.database import create_storage_engine, drop_db, init_db, session_factory
from starcard.db.storage import (
    InMemoryStorage,
    KeyValueStorage,
    SqlStorage,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "InMemoryStorage",
    "KeyValueStorage",
    "SqlStorage",
    "StorageReadError",
    "StorageWriteError",
    "create_storage_engine",
    "drop_db",
    "init_db",
    "session_factory",
]
