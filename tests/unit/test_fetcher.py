"""Unit tests for document sources."""

import httpx
import pytest

from topic_harvest.core.fetcher import (
    Document,
    FetchFailure,
    FetchStats,
    HttpDocumentSource,
    StaticDocumentSource,
    create_document_source,
)
from topic_harvest.models.item import PageInfo


@pytest.fixture
def page_info():
    """A five page collection."""
    return PageInfo(base_address="https://forum.example.com/topic/42", total_pages=5)


def _source(page_info, handler, **kwargs) -> HttpDocumentSource:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpDocumentSource(page_info, client=client, **kwargs)


class TestHttpDocumentSource:
    """Tests for HttpDocumentSource."""

    def test_fetch_success(self, page_info):
        """Test a page is fetched from its page address."""
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, text="<html>page</html>")

        with _source(page_info, handler) as source:
            result = source.fetch(3)

        assert isinstance(result, Document)
        assert result.content == "<html>page</html>"
        assert result.page_number == 3
        assert requested == ["https://forum.example.com/topic/42/page/3/"]
        assert source.stats.successful_fetches == 1

    def test_first_page_address(self, page_info):
        """Test page 1 is requested without a page suffix."""
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, text="ok")

        _source(page_info, handler).fetch(1)

        assert requested == ["https://forum.example.com/topic/42/"]

    def test_http_error_status(self, page_info):
        """Test an error status becomes a FetchFailure."""
        source = _source(page_info, lambda request: httpx.Response(404, text="gone"))

        result = source.fetch(2)

        assert isinstance(result, FetchFailure)
        assert result.http_status == 404
        assert result.error.startswith("HTTP 404")
        assert result.address == "https://forum.example.com/topic/42/page/2/"

    def test_timeout(self, page_info):
        """Test a timeout becomes a FetchFailure."""

        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        result = _source(page_info, handler).fetch(2)

        assert isinstance(result, FetchFailure)
        assert result.error.startswith("Timeout")

    def test_connection_error(self, page_info):
        """Test a network error becomes a FetchFailure."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = _source(page_info, handler).fetch(2)

        assert isinstance(result, FetchFailure)
        assert result.error.startswith("Request error")

    def test_content_too_large(self, page_info):
        """Test oversized documents are rejected."""
        source = _source(
            page_info,
            lambda request: httpx.Response(200, text="x" * 20_000),
            max_content_length=10_000,
        )

        result = source.fetch(2)

        assert isinstance(result, FetchFailure)
        assert result.error.startswith("Too large")

    def test_no_retry(self, page_info):
        """Test a failed page is requested only once."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        _source(page_info, handler).fetch(4)

        assert len(calls) == 1

    def test_stats(self, page_info):
        """Test statistics across successes and failures."""

        def handler(request):
            if request.url.path.endswith("/page/2/"):
                return httpx.Response(500)
            return httpx.Response(200, text="ok")

        source = _source(page_info, handler)
        source.fetch(1)
        source.fetch(2)

        assert source.stats.total_pages == 2
        assert source.stats.failed_fetches == 1
        assert source.stats.success_rate == 0.5
        assert source.stats.errors_by_type == {"HTTP 500": 1}

    def test_create_document_source(self, page_info):
        """Test the factory applies configured defaults."""
        source = create_document_source(page_info)

        assert source.timeout_seconds == 30
        assert source.max_content_length == 5_000_000
        source.close()


class TestStaticDocumentSource:
    """Tests for StaticDocumentSource."""

    def test_serves_known_pages(self):
        """Test pages come from the mapping."""
        source = StaticDocumentSource({1: "<p>one</p>"})

        assert source.fetch(1).content == "<p>one</p>"
        assert isinstance(source.fetch(2), FetchFailure)
        assert source.stats.success_rate == 0.5


def test_fetch_stats_empty():
    """Test the success rate of no fetches."""
    assert FetchStats().success_rate == 0.0
