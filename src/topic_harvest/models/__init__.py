"""Data models for topic harvest."""

from topic_harvest.models.base import Base
from topic_harvest.models.filter import (
    ContinuationToken,
    ContinuationTokenModel,
    FilterRequest,
)
from topic_harvest.models.item import Item, PageInfo

__all__ = [
    "Base",
    "Item",
    "PageInfo",
    "FilterRequest",
    "ContinuationToken",
    "ContinuationTokenModel",
]
