"""Shared fixtures and fakes for topic harvest tests."""

import threading
from typing import Optional

import pytest

from topic_harvest import config as config_module
from topic_harvest.core.fetcher import Document, FetchFailure
from topic_harvest.models.item import Item, PageInfo


def make_item(
    item_id: str,
    page: int = 1,
    position: int = 0,
    author: str = "id:1",
    text: str = "",
    author_name: Optional[str] = None,
) -> Item:
    """Build an Item with the default sort key layout."""
    return Item(
        id=item_id,
        page_number=page,
        sort_key=page * 1000 + position,
        rendered_content=f"<p>{text}</p>",
        searchable_text=text.lower(),
        author_key=author,
        author_name=author_name or author.split(":", 1)[-1],
    )


class ItemPageSource:
    """Document source for pages whose items are known up front.

    Pages listed in ``fail`` return a FetchFailure. When ``gate`` is given,
    every fetch blocks until the gate is set.
    """

    def __init__(self, total_pages: int, fail=(), gate: Optional[threading.Event] = None):
        self.total_pages = total_pages
        self.fail = set(fail)
        self.gate = gate
        self.calls: list[int] = []
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, page_number: int):
        with self._lock:
            self.calls.append(page_number)
        if self.gate is not None:
            self.gate.wait(5)
        if page_number in self.fail or not 1 <= page_number <= self.total_pages:
            return FetchFailure(page_number, f"HTTP 500: page {page_number}")
        return Document(page_number=page_number, content=f"page-{page_number}")

    def close(self):
        self.closed = True


class ItemPageExtractor:
    """Extractor returning prepared items for each page number."""

    def __init__(self, pages: dict[int, list[Item]], broken=()):
        self.pages = pages
        self.broken = set(broken)
        self.documents: list[Document] = []
        self._lock = threading.Lock()

    def extract(self, document: Document, page_number: int) -> list[Item]:
        with self._lock:
            self.documents.append(document)
        if page_number in self.broken:
            raise RuntimeError(f"cannot parse page {page_number}")
        return list(self.pages.get(page_number, []))


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Give every test its own default configuration."""
    monkeypatch.setenv("LOG_FILE_ENABLED", "false")
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def page_info():
    """A three page collection viewed from page 1."""
    return PageInfo(base_address="https://forum.example.com/topic/42-release", total_pages=3)


@pytest.fixture
def topic_pages():
    """Items of a three page topic.

    Author X posts on pages 1 and 3; only the page 3 post mentions
    "urgent". Author Y posts on every page.
    """
    return {
        1: [
            make_item("101", page=1, position=0, author="id:7", text="first post by x"),
            make_item("102", page=1, position=1, author="id:8", text="reply from y"),
        ],
        2: [
            make_item("201", page=2, position=0, author="id:8", text="y again, urgent question"),
        ],
        3: [
            make_item("301", page=3, position=0, author="id:8", text="y closing thoughts"),
            make_item("302", page=3, position=1, author="id:7", text="urgent: x needs a fix"),
        ],
    }


def pagination_html(total: int, current: int, body: str = "") -> str:
    """Minimal topic page markup with a pagination block."""
    return (
        f'<html><body><div class="ipsPagination" data-pages="{total}">'
        f'<li class="ipsPagination_active"><a data-page="{current}">{current}</a></li>'
        f"</div>{body}</body></html>"
    )


def article_html(comment_id: str, user_id: str, username: str, text: str, quote: str = "") -> str:
    """One forum post in the markup the HTML extractor reads."""
    blockquote = f"<blockquote>{quote}</blockquote>" if quote else ""
    return (
        f'<article class="cPost" id="elComment_{comment_id}">'
        f'<aside class="cAuthorPane_author"><a href="https://forum.example.com/profile/{user_id}-{username}/">'
        f"{username}</a></aside>"
        f'<div data-commentid="{comment_id}">{blockquote}<p>{text}</p></div>'
        f"</article>"
    )
