"""
Session manager for Flask application.

Keeps live harvest sessions in the application's extensions instead of in
module globals. Sessions left idle for longer than the configured timeout
are closed the next time a session is created.
"""

import threading
import time
import uuid
from typing import Callable, Optional

from flask import Flask, current_app

from topic_harvest.config import get_config
from topic_harvest.core.continuation import ContinuationStore
from topic_harvest.core.extractor import ItemExtractor, create_extractor
from topic_harvest.core.fetcher import DocumentSource
from topic_harvest.core.locator import NavigationContext
from topic_harvest.core.session import HarvestSession
from topic_harvest.logger import get_logger
from topic_harvest.models.item import PageInfo

logger = get_logger(__name__)


class SessionManager:
    """Registry of harvest sessions within a Flask application."""

    def __init__(
        self,
        app: Optional[Flask] = None,
        source_factory: Optional[Callable[[PageInfo], DocumentSource]] = None,
        extractor: Optional[ItemExtractor] = None,
        continuation_store: Optional[ContinuationStore] = None,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize session manager.

        Args:
            app: Optional Flask application instance
            source_factory: Builds a page source per collection
            extractor: Shared item extractor
            continuation_store: Storage for redirect handoff
            idle_seconds: Idle time before a session is closed (default from config)
            clock: Monotonic time source
        """
        self.source_factory = source_factory
        self.extractor = extractor or create_extractor()
        self.continuation_store = continuation_store
        self.idle_seconds = (
            idle_seconds if idle_seconds is not None else get_config().web.session_idle_seconds
        )
        self._clock = clock
        self._sessions: dict[str, HarvestSession] = {}
        self._last_used: dict[str, float] = {}
        self._lock = threading.Lock()

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize the manager with a Flask application.

        Args:
            app: Flask application instance
        """
        app.extensions = getattr(app, "extensions", {})
        app.extensions["session_manager"] = self

    def create_session(self, url: str, content: Optional[str] = None) -> tuple[str, HarvestSession]:
        """Create a session for a navigation.

        Any filter handed off by a previous navigation is restored.

        Args:
            url: Address the reader is on
            content: Markup of that page, if the host has it

        Returns:
            Tuple of (session_id, session)
        """
        self.close_idle()

        session = HarvestSession(
            NavigationContext(url=url, content=content),
            self.extractor,
            source_factory=self.source_factory,
            continuation_store=self.continuation_store,
        )
        session_id = uuid.uuid4().hex

        with self._lock:
            self._sessions[session_id] = session
            self._last_used[session_id] = self._clock()

        if session.restore_pending_filter() is None:
            session.refresh()

        logger.info(f"Created harvest session {session_id} for {url}")
        return session_id, session

    def get_session(self, session_id: str) -> Optional[HarvestSession]:
        """Get a session by id and mark it as used.

        Returns:
            HarvestSession or None if unknown
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_used[session_id] = self._clock()
            return session

    def close_session(self, session_id: str) -> bool:
        """Close and forget a session.

        Returns:
            True if the session existed
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._last_used.pop(session_id, None)

        if session is None:
            return False

        session.close()
        logger.info(f"Closed harvest session {session_id}")
        return True

    def close_idle(self) -> int:
        """Close sessions unused for longer than ``idle_seconds``.

        Returns:
            Number of sessions closed
        """
        now = self._clock()
        with self._lock:
            expired = [
                session_id
                for session_id, last_used in self._last_used.items()
                if now - last_used > self.idle_seconds
            ]

        closed = sum(1 for session_id in expired if self.close_session(session_id))
        if closed:
            logger.info(f"Closed {closed} idle harvest sessions")
        return closed

    def close_all(self) -> None:
        """Close every session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_used.clear()

        for session in sessions:
            session.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def get_session_manager() -> SessionManager:
    """Get the session manager from the current Flask application.

    Returns:
        SessionManager instance

    Raises:
        RuntimeError: If the manager has not been initialized
    """
    manager = current_app.extensions.get("session_manager")
    if manager is None:
        raise RuntimeError("Session manager not initialized")
    return manager
