"""
Concurrent crawl engine.

Main Components:
- Crawler: recursive traversal, one task per discovered link
- VisitedSet: atomic test-and-mark of claimed addresses
- CountedAggregator / StructuralAggregator: result merging and completion detection
- TaskPool: thread pool the tasks run on
"""

from .models import (
    CrawlTask,
    CrawlResult,
    CrawlReport,
    CrawlStatsCollector,
    ResultKind,
    TaskStatus
)

from .thread_safe import (
    ThreadSafeCounter,
    ThreadSafeQueue,
    VisitedSet
)

from .thread_pool import TaskPool
from .aggregator import CountedAggregator, StructuralAggregator, TaskOutcome, create_aggregator
from .controller import Crawler, CrawlContext

__all__ = [
    # Core models
    'CrawlTask',
    'CrawlResult',
    'CrawlReport',
    'CrawlStatsCollector',
    'ResultKind',
    'TaskStatus',

    # Thread-safe utilities
    'ThreadSafeCounter',
    'ThreadSafeQueue',
    'VisitedSet',

    # Main components
    'Crawler',
    'CrawlContext',
    'TaskPool',
    'CountedAggregator',
    'StructuralAggregator',
    'TaskOutcome',
    'create_aggregator',
]
