"""Storage layer modules for topic harvest."""

from topic_harvest.storage.database import (
    DatabaseManager,
    build_sqlite_url,
    create_sqlite_engine,
)

__all__ = [
    "DatabaseManager",
    "build_sqlite_url",
    "create_sqlite_engine",
]
