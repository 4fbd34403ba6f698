"""
Flask application for the topic harvest API.
"""

from typing import Callable, Optional

from flask import Flask

from topic_harvest.config import get_config
from topic_harvest.core.continuation import ContinuationStore, create_continuation_store
from topic_harvest.core.extractor import ItemExtractor
from topic_harvest.core.fetcher import DocumentSource
from topic_harvest.logger import get_logger
from topic_harvest.models.item import PageInfo
from topic_harvest.web.serializers import api_response
from topic_harvest.web.session_manager import SessionManager

logger = get_logger(__name__)


def create_app(
    source_factory: Optional[Callable[[PageInfo], DocumentSource]] = None,
    extractor: Optional[ItemExtractor] = None,
    continuation_store: Optional[ContinuationStore] = None,
    debug: bool = False,
) -> Flask:
    """Create and configure Flask application.

    Args:
        source_factory: Builds a page source per collection (HTTP by default)
        extractor: Item extractor (HTML extractor by default)
        continuation_store: Redirect handoff storage (from config by default)
        debug: Enable debug mode

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    config = get_config()
    app.config["SECRET_KEY"] = config.web.secret_key
    app.config["DEBUG"] = debug or config.web.debug

    if continuation_store is None and config.continuation.enabled:
        continuation_store = create_continuation_store()

    manager = SessionManager(
        app,
        source_factory=source_factory,
        extractor=extractor,
        continuation_store=continuation_store,
    )

    # ========================================================================
    # Register API Blueprints
    # ========================================================================

    from topic_harvest.web.blueprints import HarvestBlueprint

    app.register_blueprint(HarvestBlueprint().blueprint)

    # ========================================================================
    # Error Handlers
    # ========================================================================

    @app.errorhandler(404)
    def not_found(e):
        """Handle 404 errors."""
        return api_response(success=False, error="Not found", status=404)

    @app.errorhandler(500)
    def server_error(e):
        """Handle 500 errors."""
        logger.error(f"Server error: {e}")
        return api_response(success=False, error="Internal server error", status=500)

    logger.info(
        f"Web app created (continuation={'on' if manager.continuation_store else 'off'}, "
        f"mode={config.harvester.mode})"
    )

    return app
