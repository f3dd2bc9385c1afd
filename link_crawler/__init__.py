"""
Recursive concurrent link crawler.

Visits pages reachable from a seed address up to a maximum depth, fetching
each address at most once per crawl.
"""

from link_crawler.concurrent import Crawler, CrawlContext, CrawlResult, CrawlReport, ResultKind, VisitedSet
from link_crawler.crawlers import BaseFetcher, FakeFetcher, FetchResult, HTTPFetcher

__version__ = "1.0.0"

__all__ = [
    "Crawler",
    "CrawlContext",
    "CrawlResult",
    "CrawlReport",
    "ResultKind",
    "VisitedSet",
    "BaseFetcher",
    "FakeFetcher",
    "FetchResult",
    "HTTPFetcher",
]
