"""
HTTP fetcher: retrieves pages with requests and extracts links with BeautifulSoup.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse, urldefrag

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from bs4 import BeautifulSoup

from link_crawler.utils.logging import get_logger
from link_crawler.utils.errors import FetchError
from .base import BaseFetcher, FetchResult


logger = get_logger(__name__)

DEFAULT_USER_AGENT = "link-crawler/1.0"
SUMMARY_LENGTH = 80
READ_CHUNK_SIZE = 64 * 1024


def normalize_link(href: str, base: str) -> Optional[str]:
    """
    Resolve a link against its page and drop the fragment.

    Returns:
        Absolute http(s) URL, or None for other schemes
    """
    joined, _ = urldefrag(urljoin(base, href.strip()))
    if urlparse(joined).scheme not in ("http", "https"):
        return None
    return joined


def parse_html(html: str) -> BeautifulSoup:
    """Parse a page once for both summary and link extraction."""
    return BeautifulSoup(html, "html.parser")


def extract_links(soup: BeautifulSoup, base: str) -> List[str]:
    """
    Extract unique outbound links from a parsed page, in document order.

    Args:
        soup: Parsed page
        base: Address of the page, used to resolve relative links
    """
    links: List[str] = []
    seen = set()
    for anchor in soup.find_all("a", href=True):
        link = normalize_link(anchor["href"], base)
        if link and link not in seen:
            seen.add(link)
            links.append(link)
    return links


def summarize(soup: BeautifulSoup) -> str:
    """Page title, or the start of the visible text when there is none."""
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    text = " ".join(soup.get_text(" ").split())
    if len(text) > SUMMARY_LENGTH:
        return text[:SUMMARY_LENGTH - 3] + "..."
    return text


class HTTPFetcher(BaseFetcher):
    """Fetches pages over HTTP(S). One request per fetch, no retries."""

    def __init__(self, name: str = "http", config: Optional[Dict[str, Any]] = None,
                 session: Optional[requests.Session] = None):
        """
        Args:
            name: Registry name
            config: Supports ``request_timeout``, ``user_agent`` and
                ``max_content_length`` (bytes read from the body at most)
            session: Optional pre-built session
        """
        super().__init__(name, config)
        self.timeout = float(self.config.get("request_timeout", 10))
        self.user_agent = self.config.get("user_agent") or DEFAULT_USER_AGENT
        self.max_content_length = int(self.config.get("max_content_length", 5 * 1024 * 1024))
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session without transport-level retries."""
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=Retry(total=0))
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"User-Agent": self.user_agent})
        return session

    def validate_config(self) -> bool:
        return self.timeout > 0 and self.max_content_length > 0

    def fetch(self, address: str) -> FetchResult:
        try:
            response = self.session.get(address, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            logger.debug(f"Request failed for {address}: {e}")
            raise FetchError(f"fetch failed: {address}: {e}", address=address)

        try:
            if response.status_code == 404:
                raise FetchError(f"not found: {address}", address=address, details={"status": 404})
            if not 200 <= response.status_code < 300:
                raise FetchError(
                    f"http {response.status_code}: {address}",
                    address=address,
                    details={"status": response.status_code}
                )

            content_type = response.headers.get("Content-Type", "")
            if "html" not in content_type.lower():
                logger.debug(f"Non-HTML content at {address}: {content_type}")
                return FetchResult(content=content_type or "unknown content", links=[])

            try:
                html = self._read_body(response, address)
            except requests.RequestException as e:
                raise FetchError(f"fetch failed: {address}: {e}", address=address)
        finally:
            response.close()

        soup = parse_html(html)
        page_url = response.url or address
        return FetchResult(content=summarize(soup), links=extract_links(soup, page_url))

    def _read_body(self, response: requests.Response, address: str) -> str:
        """Read at most ``max_content_length`` bytes of the body and decode them."""
        body = bytearray()
        chunk_size = min(READ_CHUNK_SIZE, self.max_content_length)
        for chunk in response.iter_content(chunk_size=chunk_size):
            body.extend(chunk)
            if len(body) >= self.max_content_length:
                logger.debug(f"Truncated {address} at {self.max_content_length} bytes")
                break

        data = bytes(body[:self.max_content_length])
        try:
            return data.decode(response.encoding or "utf-8", errors="replace")
        except LookupError:
            logger.debug(f"Unknown encoding {response.encoding!r} at {address}, using utf-8")
            return data.decode("utf-8", errors="replace")

    def close(self) -> None:
        self.session.close()
