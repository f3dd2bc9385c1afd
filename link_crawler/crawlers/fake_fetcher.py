"""
In-memory fetcher returning canned pages.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from link_crawler.utils.errors import FetchError
from .base import BaseFetcher, FetchResult


DEFAULT_FIXTURE_BASE = "https://golang.org"

PageTable = Mapping[str, Tuple[str, List[str]]]


def build_reference_fixture(base: str = DEFAULT_FIXTURE_BASE) -> Dict[str, Tuple[str, List[str]]]:
    """
    Build the reference page graph.

    ``/`` links to ``/pkg/`` and ``/cmd/``; ``/pkg/`` links back to ``/``,
    to ``/cmd/`` and to the two package pages, which link back to ``/`` and
    ``/pkg/``. ``/cmd/`` is linked but cannot be fetched.

    Args:
        base: Prefix for every path; an empty string gives bare paths

    Returns:
        Mapping of address to (content, links)
    """
    def url(path: str) -> str:
        return f"{base}{path}"

    return {
        url("/"): (
            "The Go Programming Language",
            [url("/pkg/"), url("/cmd/")],
        ),
        url("/pkg/"): (
            "Packages",
            [url("/"), url("/cmd/"), url("/pkg/fmt/"), url("/pkg/os/")],
        ),
        url("/pkg/fmt/"): (
            "Package fmt",
            [url("/"), url("/pkg/")],
        ),
        url("/pkg/os/"): (
            "Package os",
            [url("/"), url("/pkg/")],
        ),
    }


class FakeFetcher(BaseFetcher):
    """Fetcher backed by a fixed table of pages."""

    def __init__(self, name: str = "fake", config: Optional[Dict[str, Any]] = None,
                 pages: Optional[PageTable] = None):
        """
        Args:
            name: Registry name
            config: Supports ``fixture_base`` to relocate the reference graph
            pages: Explicit page table; overrides the reference graph
        """
        super().__init__(name, config)
        if pages is None:
            pages = build_reference_fixture(self.config.get("fixture_base", DEFAULT_FIXTURE_BASE))
        self._pages = {address: (content, list(links)) for address, (content, links) in pages.items()}

    def fetch(self, address: str) -> FetchResult:
        try:
            content, links = self._pages[address]
        except KeyError:
            raise FetchError(f"not found: {address}", address=address)
        return FetchResult(content=content, links=list(links))
