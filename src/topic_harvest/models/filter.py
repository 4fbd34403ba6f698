"""
Filter request and continuation token models.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from topic_harvest.models.base import Base


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class FilterRequest(BaseModel):
    """The single active filter intent of a session.

    ``keywords`` holds the applied, normalized keyword set. While
    ``awaiting_apply`` is set the raw input has changed but has not been
    applied, and no keyword filter is evaluated.
    """

    author_key: Optional[str] = Field(None, description="Exact author key to keep")
    author_name: Optional[str] = Field(None, description="Author display name")
    keywords: list[str] = Field(default_factory=list, description="Normalized keywords")
    raw_keyword_input: str = Field(default="", description="Keyword text as typed")
    awaiting_apply: bool = Field(default=False, description="Keyword input is pending")

    @property
    def is_empty(self) -> bool:
        """True when the request narrows nothing."""
        return not self.author_key and not self.keywords and not self.awaiting_apply

    @property
    def keywords_active(self) -> bool:
        """True when a keyword filter should be evaluated."""
        return bool(self.keywords) and not self.awaiting_apply


class ContinuationToken(BaseModel):
    """A filter intent carried across a full navigation."""

    author_key: Optional[str] = None
    author_name: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    raw_keyword_input: str = ""
    awaiting_apply: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_request(cls, request: FilterRequest) -> "ContinuationToken":
        """Build a token carrying ``request``."""
        return cls(**request.model_dump())

    def to_request(self) -> FilterRequest:
        """Convert back to a filter request."""
        return FilterRequest(**self.model_dump(exclude={"created_at"}))

    def is_expired(self, ttl_seconds: float, now: Optional[datetime] = None) -> bool:
        """Check the token against its time-to-live.

        Args:
            ttl_seconds: Time-to-live in seconds
            now: Reference time (defaults to current UTC time)

        Returns:
            True if the token is older than ``ttl_seconds``
        """
        now = now or utcnow()
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        age = (now - created).total_seconds()
        return age < 0 or age > ttl_seconds


class ContinuationTokenModel(Base):
    """SQLAlchemy ORM model for a stored continuation token.

    One row per scope; writing a new token replaces the previous one.
    """

    __tablename__ = "continuation_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[str] = mapped_column(String(2048), unique=True, nullable=False, index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: utcnow().replace(tzinfo=None), nullable=False
    )

    def __repr__(self) -> str:
        return f"<ContinuationTokenModel(id={self.id}, scope='{self.scope}')>"
