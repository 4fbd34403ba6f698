"""
Serializer functions for converting harvest results to dictionaries.

This module provides helper functions for converting items and views to
dictionaries for JSON serialization in API responses.
"""

from typing import Any, Optional

from topic_harvest.core.pagination import PAGE_GAP, View
from topic_harvest.models.filter import FilterRequest
from topic_harvest.models.item import Item


def item_to_dict(item: Item) -> dict:
    """Convert Item to dictionary.

    Args:
        item: Item instance

    Returns:
        Dictionary representation
    """
    return {
        "id": item.id,
        "page_number": item.page_number,
        "sort_key": item.sort_key,
        "author_key": item.author_key,
        "author_name": item.author_name,
        "rendered_content": item.rendered_content,
    }


def request_to_dict(request: Optional[FilterRequest]) -> Optional[dict]:
    """Convert FilterRequest to dictionary."""
    if request is None:
        return None
    return {
        "author_key": request.author_key,
        "author_name": request.author_name,
        "keywords": list(request.keywords),
        "raw_keyword_input": request.raw_keyword_input,
        "awaiting_apply": request.awaiting_apply,
    }


def view_to_dict(view: View) -> dict:
    """Convert View to dictionary.

    Only the items of the current view page are included.

    Args:
        view: View instance

    Returns:
        Dictionary representation
    """
    return {
        "status": view.status.value,
        "message": view.message,
        "request": request_to_dict(view.request),
        "current_page": view.current_page,
        "total_pages": view.total_pages,
        "per_page": view.per_page,
        "total_items": view.total_items,
        "loading": view.loading,
        "cancelled": view.cancelled,
        "progress": {
            "processed": view.progress.processed,
            "total": view.progress.total,
            "items_found": view.progress.items_found,
            "message": view.progress.message,
        },
        "page_window": [None if entry == PAGE_GAP else entry for entry in view.page_window],
        "navigation": [
            {"kind": link.kind, "target": link.target, "enabled": link.enabled}
            for link in view.navigation
        ],
        "items": [item_to_dict(item) for item in view.page_items],
    }


def api_response(
    success: bool = True,
    data: Any = None,
    message: str = None,
    error: str = None,
    status: int = 200
) -> tuple:
    """Standard API response format.

    Args:
        success: Whether the request was successful
        data: Response data
        message: Success message
        error: Error message
        status: HTTP status code

    Returns:
        Flask response with JSON data
    """
    from flask import jsonify

    response_data = {
        "success": success,
        "data": data,
        "message": message,
        "error": error,
    }
    return jsonify(response_data), status
