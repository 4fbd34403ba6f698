"""
Harvest session API blueprint.

This module contains all harvest session endpoints. Every endpoint that
changes a session responds with the view as it stands after the command.
"""

from flask import Blueprint, request

from topic_harvest.logger import get_logger
from topic_harvest.web.serializers import api_response, view_to_dict
from topic_harvest.web.session_manager import get_session_manager

logger = get_logger(__name__)


class HarvestBlueprint:
    """Blueprint for harvest session operations."""

    def __init__(self):
        """Initialize the harvest blueprint."""
        self.blueprint = Blueprint(
            "harvest",
            __name__,
            url_prefix="/api/sessions"
        )
        self._register_routes()

    def _register_routes(self):
        """Register all session routes."""
        self.blueprint.add_url_rule(
            "",
            view_func=self._create,
            methods=["POST"]
        )
        self.blueprint.add_url_rule(
            "/<session_id>/view",
            view_func=self._view,
            methods=["GET"]
        )
        self.blueprint.add_url_rule(
            "/<session_id>/author",
            view_func=self._author,
            methods=["POST"]
        )
        self.blueprint.add_url_rule(
            "/<session_id>/keywords",
            view_func=self._keywords,
            methods=["POST"]
        )
        self.blueprint.add_url_rule(
            "/<session_id>/page",
            view_func=self._page,
            methods=["POST"]
        )
        self.blueprint.add_url_rule(
            "/<session_id>/filter",
            view_func=self._clear_filter,
            methods=["DELETE"]
        )
        self.blueprint.add_url_rule(
            "/<session_id>",
            view_func=self._close,
            methods=["DELETE"]
        )

    @staticmethod
    def _session_response(session_id: str, session, redirect: str = None):
        data = {
            "session_id": session_id,
            "redirect": redirect,
            "view": view_to_dict(session.view) if session.view is not None else None,
        }
        return api_response(success=True, data=data)

    @classmethod
    def _command_response(cls, session_id: str, session, redirect: str = None):
        if redirect is not None:
            # The filter continues in the session created after the redirect
            get_session_manager().close_session(session_id)
        return cls._session_response(session_id, session, redirect)

    @staticmethod
    def _not_found(session_id: str):
        return api_response(success=False, error=f"Session not found: {session_id}", status=404)

    def _create(self):
        """Create a session for the page the reader is on.

        Request body:
            url: Address of the page
            html: Optional markup of the page
        """
        data = request.get_json(silent=True) or {}
        url = data.get("url")
        if not url:
            return api_response(success=False, error="url is required", status=400)

        session_id, session = get_session_manager().create_session(url, data.get("html"))
        response, _ = self._session_response(session_id, session)
        return response, 201

    def _view(self, session_id: str):
        """Get the current view of a session."""
        session = get_session_manager().get_session(session_id)
        if session is None:
            return self._not_found(session_id)
        if session.view is None:
            session.refresh()
        return self._session_response(session_id, session)

    def _author(self, session_id: str):
        """Toggle the author filter.

        Request body:
            author_key: Author to filter by
            author_name: Optional display name
        """
        session = get_session_manager().get_session(session_id)
        if session is None:
            return self._not_found(session_id)

        data = request.get_json(silent=True) or {}
        author_key = data.get("author_key")
        if not author_key:
            return api_response(success=False, error="author_key is required", status=400)

        redirect = session.select_author(author_key, data.get("author_name"))
        return self._command_response(session_id, session, redirect)

    def _keywords(self, session_id: str):
        """Update keyword input, optionally applying it.

        Request body:
            text: Keyword input
            apply: Apply the input now (default false)
        """
        session = get_session_manager().get_session(session_id)
        if session is None:
            return self._not_found(session_id)

        data = request.get_json(silent=True) or {}
        text = data.get("text", "")
        if not isinstance(text, str):
            return api_response(success=False, error="text must be a string", status=400)

        redirect = None
        if data.get("apply"):
            redirect = session.apply_keywords(text)
        else:
            session.set_keyword_input(text)
        return self._command_response(session_id, session, redirect)

    def _page(self, session_id: str):
        """Move to another view page.

        Request body:
            page: Page number (clamped into range)
        """
        session = get_session_manager().get_session(session_id)
        if session is None:
            return self._not_found(session_id)

        data = request.get_json(silent=True) or {}
        try:
            page = int(data.get("page"))
        except (TypeError, ValueError):
            return api_response(success=False, error="page must be an integer", status=400)

        session.goto_page(page)
        return self._session_response(session_id, session)

    def _clear_filter(self, session_id: str):
        """Drop the session's filter."""
        session = get_session_manager().get_session(session_id)
        if session is None:
            return self._not_found(session_id)

        session.clear_filter()
        return self._session_response(session_id, session)

    def _close(self, session_id: str):
        """Close a session and cancel its harvest."""
        if not get_session_manager().close_session(session_id):
            return self._not_found(session_id)
        return api_response(success=True, message="Session closed")
