"""
Database connection and session management.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from topic_harvest.config import get_config
from topic_harvest.logger import get_logger
from topic_harvest.models import Base

if TYPE_CHECKING:
    from topic_harvest.config import DatabaseConfig

logger = get_logger(__name__)


def build_sqlite_url(path: str) -> str:
    """Build a SQLite database URL.

    Args:
        path: File path, ``:memory:`` or an existing ``sqlite://`` URL

    Returns:
        SQLAlchemy URL string
    """
    if path.startswith("sqlite://"):
        return path
    if path == ":memory:":
        return "sqlite://"

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def create_sqlite_engine(path: str, echo: bool = False) -> Engine:
    """Create an engine usable from several worker threads.

    In-memory databases use a StaticPool so every thread sees the same
    connection and therefore the same tables.
    """
    url = build_sqlite_url(path)
    kwargs = {
        "echo": echo,
        "connect_args": {"check_same_thread": False, "timeout": 30},
    }
    if url == "sqlite://":
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


class DatabaseManager:
    """Database manager for context-managed database operations."""

    def __init__(self, db_path: Optional[str] = None, db_config: Optional["DatabaseConfig"] = None):
        """Initialize database manager.

        Args:
            db_path: Optional database path (``:memory:`` for tests)
            db_config: Optional database configuration

        Note:
            If neither db_path nor db_config is provided, uses the global config.
        """
        db_config = db_config or get_config().database
        self.db_path = db_path or db_config.path
        self.echo = db_config.echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        """Get the database engine."""
        if self._engine is None:
            self._engine = create_sqlite_engine(self.db_path, echo=self.echo)
        return self._engine

    def init_db(self, drop_all: bool = False) -> None:
        """Initialize database tables.

        Args:
            drop_all: If True, drop existing tables first
        """
        if drop_all:
            logger.warning("Dropping all tables - data will be lost!")
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session.

        Yields:
            SQLAlchemy Session instance
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
            )
        session = self._session_factory()

        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._session_factory = None

    def __enter__(self) -> "DatabaseManager":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
