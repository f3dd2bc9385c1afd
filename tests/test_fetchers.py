"""
Unit tests for fetch implementations and the fetcher registry.
"""

from unittest.mock import Mock

import pytest
import requests

from link_crawler.crawlers import (
    BaseFetcher,
    FakeFetcher,
    FetcherRegistry,
    FetchResult,
    HTTPFetcher,
    build_reference_fixture,
    default_registry,
)
from link_crawler.crawlers.http_fetcher import extract_links, normalize_link, parse_html, summarize
from link_crawler.utils.errors import CrawlerError, FetchError


PAGE = """
<html>
  <head><title> Packages </title></head>
  <body>
    <a href="/pkg/fmt/">fmt</a>
    <a href="os/#top">os</a>
    <a href="https://other.example/x">other</a>
    <a href="/pkg/fmt/#section">fmt again</a>
    <a href="mailto:someone@example.org">mail</a>
    <a href="javascript:void(0)">js</a>
    <a name="anchor-only">no href</a>
  </body>
</html>
"""


def make_response(status=200, text=PAGE, content_type="text/html; charset=utf-8", url="https://golang.org/pkg/",
                  chunks=None):
    body = text.encode("utf-8")
    chunks = chunks if chunks is not None else [body[i:i + 64] for i in range(0, len(body), 64)]
    response = Mock()
    response.status_code = status
    response.headers = {"Content-Type": content_type}
    response.url = url
    response.encoding = "utf-8"
    response.iter_content.side_effect = lambda chunk_size=1: iter(chunks)
    return response


class ChunkSource:
    """Body chunks that remember how many were read."""

    def __init__(self, count, size):
        self.count = count
        self.size = size
        self.read = 0

    def __iter__(self):
        for i in range(self.count):
            self.read += 1
            yield (b"<p>" + b"x" * (self.size - 7) + b"</p>\n")[:self.size]


class TestFakeFetcher:

    def test_reference_fixture_shape(self):
        pages = build_reference_fixture(base="")
        assert set(pages) == {"/", "/pkg/", "/pkg/fmt/", "/pkg/os/"}
        assert pages["/"] == ("The Go Programming Language", ["/pkg/", "/cmd/"])
        assert "/cmd/" in pages["/pkg/"][1]

    def test_default_uses_golang_base(self):
        result = FakeFetcher().fetch("https://golang.org/")
        assert result == FetchResult("The Go Programming Language",
                                     ["https://golang.org/pkg/", "https://golang.org/cmd/"])

    def test_missing_page(self):
        with pytest.raises(FetchError) as exc_info:
            FakeFetcher().fetch("https://golang.org/cmd/")
        assert exc_info.value.message == "not found: https://golang.org/cmd/"
        assert exc_info.value.address == "https://golang.org/cmd/"

    def test_returned_links_are_copies(self, reference_fetcher):
        reference_fetcher.fetch("/").links.append("/extra/")
        assert reference_fetcher.fetch("/").links == ["/pkg/", "/cmd/"]


class TestFetcherRegistry:

    def test_default_registry(self):
        assert default_registry.list_fetchers() == ["fake", "http"]
        assert isinstance(default_registry.get_fetcher("fake"), FakeFetcher)

    def test_config_merged_over_defaults(self):
        fetcher = default_registry.get_fetcher("fake", {"fixture_base": "http://localhost"})
        assert fetcher.fetch("http://localhost/").content == "The Go Programming Language"

    def test_unknown_fetcher(self):
        with pytest.raises(CrawlerError) as exc_info:
            default_registry.get_fetcher("ftp")
        assert exc_info.value.details["available_fetchers"] == ["fake", "http"]

    def test_register_rejects_non_fetcher(self):
        registry = FetcherRegistry()
        with pytest.raises(CrawlerError):
            registry.register("bad", dict)

    def test_invalid_config_rejected(self):
        with pytest.raises(CrawlerError):
            default_registry.get_fetcher("http", {"request_timeout": 0})

    def test_custom_fetcher(self):
        class StaticFetcher(BaseFetcher):
            def fetch(self, address):
                return FetchResult("static")

        registry = FetcherRegistry()
        registry.register("static", StaticFetcher)
        fetcher = registry.get_fetcher("static")

        assert registry.is_registered("static")
        assert fetcher.name == "static"
        assert fetcher.fetch("/") == FetchResult("static", [])


class TestLinkExtraction:

    def test_normalize_link(self):
        assert normalize_link("os/#top", "https://golang.org/pkg/") == "https://golang.org/pkg/os/"
        assert normalize_link("mailto:a@b.c", "https://golang.org/") is None

    def test_extract_links(self):
        assert extract_links(parse_html(PAGE), "https://golang.org/pkg/") == [
            "https://golang.org/pkg/fmt/",
            "https://golang.org/pkg/os/",
            "https://other.example/x",
        ]

    def test_summary_prefers_title(self):
        assert summarize(parse_html(PAGE)) == "Packages"

    def test_summary_falls_back_to_text(self):
        html = "<html><body><p>" + "word " * 40 + "</p></body></html>"
        summary = summarize(parse_html(html))
        assert summary.startswith("word word")
        assert summary.endswith("...")
        assert len(summary) == 80


class TestHTTPFetcher:

    def make_fetcher(self, response=None, error=None, **config):
        session = Mock(spec=requests.Session)
        if error is not None:
            session.get.side_effect = error
        else:
            session.get.return_value = response
        return HTTPFetcher(config={"request_timeout": 3, **config}, session=session), session

    def test_success(self):
        response = make_response()
        fetcher, session = self.make_fetcher(response)

        result = fetcher.fetch("https://golang.org/pkg/")

        session.get.assert_called_once_with("https://golang.org/pkg/", timeout=3.0, stream=True)
        assert result.content == "Packages"
        assert result.links[0] == "https://golang.org/pkg/fmt/"
        response.close.assert_called_once_with()

    def test_body_read_stops_at_size_limit(self):
        source = ChunkSource(count=100, size=1024)
        response = make_response(chunks=source)
        fetcher, _ = self.make_fetcher(response, max_content_length=2048)

        result = fetcher.fetch("https://golang.org/huge/")

        assert source.read == 2
        assert len(result.content) <= 80
        response.close.assert_called_once_with()

    def test_size_limit_counts_bytes(self):
        # Each "é" is two bytes in utf-8
        html = "<p>" + "é" * 20 + "</p>"
        fetcher, _ = self.make_fetcher(make_response(text=html), max_content_length=13)

        result = fetcher.fetch("https://golang.org/accents/")

        assert result.content == "é" * 5

    def test_unknown_encoding_falls_back_to_utf8(self):
        response = make_response(text="<title>café</title>")
        response.encoding = "no-such-codec"
        fetcher, _ = self.make_fetcher(response)

        assert fetcher.fetch("https://golang.org/").content == "café"

    def test_broken_body_is_fetch_error(self):
        response = make_response()
        response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("truncated")
        fetcher, _ = self.make_fetcher(response)

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://golang.org/")
        assert "truncated" in exc_info.value.message
        response.close.assert_called_once_with()

    def test_not_found(self):
        response = make_response(status=404)
        fetcher, _ = self.make_fetcher(response)
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://golang.org/cmd/")
        assert exc_info.value.message == "not found: https://golang.org/cmd/"
        assert exc_info.value.details["status"] == 404
        response.close.assert_called_once_with()
        response.iter_content.assert_not_called()

    def test_server_error(self):
        fetcher, _ = self.make_fetcher(make_response(status=503))
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://golang.org/")
        assert exc_info.value.message == "http 503: https://golang.org/"

    def test_transport_error_not_retried(self):
        fetcher, session = self.make_fetcher(error=requests.ConnectionError("refused"))
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://golang.org/")
        assert "refused" in exc_info.value.message
        assert session.get.call_count == 1

    def test_non_html_has_no_links(self):
        fetcher, _ = self.make_fetcher(make_response(content_type="application/pdf", text="%PDF"))
        result = fetcher.fetch("https://golang.org/doc.pdf")
        assert result == FetchResult("application/pdf", [])

    def test_links_resolved_against_final_url(self):
        response = make_response(text='<a href="next/">n</a>', url="https://golang.org/redirected/")
        fetcher, _ = self.make_fetcher(response)
        assert fetcher.fetch("https://golang.org/start/").links == ["https://golang.org/redirected/next/"]

    def test_default_session(self):
        fetcher = HTTPFetcher(config={"user_agent": "tester/0.1"})
        try:
            assert fetcher.session.headers["User-Agent"] == "tester/0.1"
            assert fetcher.validate_config()
        finally:
            fetcher.close()
