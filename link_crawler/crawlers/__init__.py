"""
Fetchers that supply page content and links to the crawler.
"""

from .base import BaseFetcher, FetcherRegistry, FetchResult
from .fake_fetcher import FakeFetcher, build_reference_fixture, DEFAULT_FIXTURE_BASE
from .http_fetcher import HTTPFetcher

default_registry = FetcherRegistry()

default_registry.register('fake', FakeFetcher, {'fixture_base': DEFAULT_FIXTURE_BASE})

default_registry.register('http', HTTPFetcher, {
    'request_timeout': 10,
    'max_content_length': 5 * 1024 * 1024,
})

__all__ = [
    'BaseFetcher',
    'FetcherRegistry',
    'FetchResult',
    'FakeFetcher',
    'HTTPFetcher',
    'build_reference_fixture',
    'default_registry',
]
