"""Web API for topic harvest sessions."""

from topic_harvest.web.app import create_app

__all__ = ["create_app"]
