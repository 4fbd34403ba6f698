"""Core harvesting and filtering modules for topic harvest.

External code (web layer, scripts) drives everything through
``HarvestSession``:

    from topic_harvest.core import HarvestSession, NavigationContext, create_extractor

    session = HarvestSession(
        NavigationContext(url=url, content=html),
        create_extractor(),
        on_view_changed=render,
    )
    session.select_author("id:42", "alice")

The building blocks are exported for scripts and tests that need to run a
single stage on its own.
"""

# Session (main entry point)
from topic_harvest.core.session import HarvestSession, needs_harvest

# Building blocks
from topic_harvest.core.continuation import (
    ContinuationHandoff,
    ContinuationStore,
    MemoryContinuationStore,
    SqlContinuationStore,
    create_continuation_store,
)
from topic_harvest.core.extractor import HtmlItemExtractor, ItemExtractor, create_extractor
from topic_harvest.core.fetcher import (
    DocumentSource,
    HttpDocumentSource,
    StaticDocumentSource,
    create_document_source,
)
from topic_harvest.core.filter_engine import FilterEngine, parse_keywords
from topic_harvest.core.harvester import Harvester, HarvestRun
from topic_harvest.core.locator import (
    NavigationContext,
    PageLocationError,
    PageLocator,
    build_page_address,
)
from topic_harvest.core.pagination import build_view
from topic_harvest.core.store import ItemStore
from topic_harvest.core.traversal import build_traversal_order

# Result types (for type hints and return values)
from topic_harvest.core.fetcher import Document, FetchFailure, FetchStats
from topic_harvest.core.filter_engine import FilterResult
from topic_harvest.core.pagination import NavigationLink, Progress, View, ViewStatus

__all__ = [
    # Session
    "HarvestSession",
    "needs_harvest",
    # Building blocks
    "ContinuationHandoff",
    "ContinuationStore",
    "MemoryContinuationStore",
    "SqlContinuationStore",
    "create_continuation_store",
    "HtmlItemExtractor",
    "ItemExtractor",
    "create_extractor",
    "DocumentSource",
    "HttpDocumentSource",
    "StaticDocumentSource",
    "create_document_source",
    "FilterEngine",
    "parse_keywords",
    "Harvester",
    "HarvestRun",
    "NavigationContext",
    "PageLocationError",
    "PageLocator",
    "build_page_address",
    "build_view",
    "ItemStore",
    "build_traversal_order",
    # Result types
    "Document",
    "FetchFailure",
    "FetchStats",
    "FilterResult",
    "NavigationLink",
    "Progress",
    "View",
    "ViewStatus",
]
