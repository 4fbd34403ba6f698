"""
Continuation handoff: carries a pending filter across a full navigation.

When a filter is requested away from page 1, the intent is written to
short-lived storage before redirecting. On load, an unexpired token is
consumed at most once and turned back into a filter request.
"""

import threading
from datetime import timedelta
from typing import Optional, Protocol

from pydantic import ValidationError

from topic_harvest.config import get_config
from topic_harvest.logger import get_logger
from topic_harvest.models.filter import (
    ContinuationToken,
    ContinuationTokenModel,
    FilterRequest,
    utcnow,
)
from topic_harvest.models.item import PageInfo
from topic_harvest.storage.database import DatabaseManager

logger = get_logger(__name__)

DEFAULT_SCOPE = "default"


class ContinuationStore(Protocol):
    """Short-lived storage for one continuation token per scope."""

    def put(self, token: ContinuationToken, ttl_seconds: float, scope: str = DEFAULT_SCOPE) -> None:
        ...

    def take_if_valid(self, scope: str = DEFAULT_SCOPE) -> Optional[ContinuationToken]:
        ...


class MemoryContinuationStore:
    """Process-local continuation store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: dict[str, tuple[ContinuationToken, float]] = {}

    def put(self, token: ContinuationToken, ttl_seconds: float, scope: str = DEFAULT_SCOPE) -> None:
        with self._lock:
            self._tokens[scope] = (token, ttl_seconds)

    def take_if_valid(self, scope: str = DEFAULT_SCOPE) -> Optional[ContinuationToken]:
        """Remove and return the scope's token if it has not expired."""
        with self._lock:
            entry = self._tokens.pop(scope, None)
        if entry is None:
            return None

        token, ttl_seconds = entry
        if token.is_expired(ttl_seconds):
            logger.debug(f"Discarding expired continuation token for {scope}")
            return None
        return token


class SqlContinuationStore:
    """Continuation store backed by a database table.

    Survives process restarts, so a redirect handled by another worker
    process can still pick up the pending filter.
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        """Initialize the store.

        Args:
            db_manager: Database manager (defaults to the configured database)
        """
        self.db_manager = db_manager or DatabaseManager()
        self.db_manager.init_db()

    def put(self, token: ContinuationToken, ttl_seconds: float, scope: str = DEFAULT_SCOPE) -> None:
        expires_at = (token.created_at + timedelta(seconds=ttl_seconds)).replace(tzinfo=None)
        payload = token.model_dump_json()

        with self.db_manager.session() as session:
            row = session.query(ContinuationTokenModel).filter(
                ContinuationTokenModel.scope == scope
            ).first()
            if row is None:
                session.add(ContinuationTokenModel(scope=scope, payload=payload, expires_at=expires_at))
            else:
                row.payload = payload
                row.expires_at = expires_at
                row.created_at = utcnow().replace(tzinfo=None)

    def take_if_valid(self, scope: str = DEFAULT_SCOPE) -> Optional[ContinuationToken]:
        """Delete the scope's token and return it if valid.

        The row is read and deleted in one transaction; an expired or
        malformed row is deleted all the same.
        """
        with self.db_manager.session() as session:
            row = session.query(ContinuationTokenModel).filter(
                ContinuationTokenModel.scope == scope
            ).first()
            if row is None:
                return None

            payload = row.payload
            expires_at = row.expires_at
            session.delete(row)

        if expires_at < utcnow().replace(tzinfo=None):
            logger.debug(f"Discarding expired continuation token for {scope}")
            return None

        try:
            return ContinuationToken.model_validate_json(payload)
        except ValidationError as e:
            logger.debug(f"Discarding malformed continuation token for {scope}: {e}")
            return None


class ContinuationHandoff:
    """Writes and restores pending filter intents around a redirect."""

    def __init__(self, store: ContinuationStore, ttl_seconds: Optional[float] = None) -> None:
        """Initialize the handoff.

        Args:
            store: Token storage
            ttl_seconds: Token time-to-live (default from config)
        """
        self.store = store
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else get_config().continuation.ttl_seconds
        )

    def stash(self, request: FilterRequest, scope: str) -> ContinuationToken:
        """Persist a filter request ahead of a navigation.

        Args:
            request: Filter intent to carry over
            scope: Storage scope (usually the collection address)

        Returns:
            The stored token
        """
        token = ContinuationToken.from_request(request)
        self.store.put(token, self.ttl_seconds, scope=scope)
        logger.info(f"Stashed filter for {scope} ahead of redirect to page 1")
        return token

    def restore(self, page_info: PageInfo, scope: Optional[str] = None) -> Optional[FilterRequest]:
        """Consume a pending token and turn it into a filter request.

        The token is consumed whenever one exists. It is only honoured when it
        is still valid and the reader is on page 1.

        Args:
            page_info: Resolved location after the navigation
            scope: Storage scope (defaults to the collection address)

        Returns:
            The restored FilterRequest, or None
        """
        scope = scope or page_info.base_address
        token = self.store.take_if_valid(scope=scope)
        if token is None:
            return None

        if token.is_expired(self.ttl_seconds):
            logger.debug(f"Discarding expired continuation token for {scope}")
            return None

        if page_info.current_page != 1:
            logger.debug(
                f"Discarding continuation token for {scope}: "
                f"landed on page {page_info.current_page}"
            )
            return None

        try:
            request = token.to_request()
        except ValidationError as e:
            logger.debug(f"Discarding malformed continuation token for {scope}: {e}")
            return None

        logger.info(f"Restored pending filter for {scope}")
        return request


def create_continuation_store(db_manager: Optional[DatabaseManager] = None) -> ContinuationStore:
    """Create the continuation store selected by configuration."""
    if get_config().continuation.backend == "sqlite":
        return SqlContinuationStore(db_manager)
    return MemoryContinuationStore()
