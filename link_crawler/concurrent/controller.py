"""
Concurrent recursive crawler.

``Crawler.crawl`` visits the seed address and, for every page it fetches,
spawns one task per outbound link with one less level of depth. Each address
is fetched at most once per crawl: a task claims its address in the crawl's
``VisitedSet`` before fetching, and later tasks for the same address report
it as already visited instead.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from link_crawler.config import CrawlConfig
from link_crawler.crawlers.base import BaseFetcher
from link_crawler.utils.logging import get_logger
from link_crawler.utils.errors import FetchError
from .aggregator import create_aggregator
from .models import CrawlReport, CrawlResult, CrawlStatsCollector, CrawlTask, TaskStatus
from .thread_pool import TaskPool
from .thread_safe import VisitedSet


logger = get_logger(__name__)


@dataclass
class CrawlContext:
    """State shared by all tasks of one crawl invocation."""
    fetcher: BaseFetcher
    visited: VisitedSet = field(default_factory=VisitedSet)
    stats: CrawlStatsCollector = field(default_factory=CrawlStatsCollector)


class Crawler:
    """Crawls pages reachable from a seed address up to a maximum depth."""

    def __init__(self, fetcher: BaseFetcher, config: Optional[CrawlConfig] = None):
        """
        Args:
            fetcher: Fetch capability used for every page
            config: Crawl settings (completion mode, worker count)
        """
        self.fetcher = fetcher
        self.config = config or CrawlConfig()
        self.config.validate()

    def crawl(self, address: str, depth: int, context: Optional[CrawlContext] = None) -> Iterator[CrawlResult]:
        """
        Crawl from an address and yield one result per task attempt.

        A page's result is yielded before the results of the pages it links
        to; the order between sibling subtrees is not defined. The iterator
        ends once every spawned task has finished.

        Args:
            address: Seed address
            depth: Maximum depth; 0 or less yields nothing
            context: Crawl state; a fresh one is created when omitted

        Yields:
            CrawlResult for every task whose depth was not exhausted
        """
        context = context or CrawlContext(fetcher=self.fetcher)
        logger.info(f"Starting crawl of {address} to depth {depth} ({self.config.completion_mode})")

        with TaskPool(max_workers=self.config.max_workers) as pool:
            aggregator = create_aggregator(
                self.config.completion_mode,
                pool,
                lambda task: self.visit(task, context),
                on_failure=context.stats.add_result
            )
            aggregator.start(CrawlTask(address=address, depth=depth))
            yield from aggregator.results()

        logger.info(f"Crawl of {address} finished: {context.stats.get_summary()}")

    def run(self, address: Optional[str] = None, depth: Optional[int] = None) -> CrawlReport:
        """
        Crawl to completion and collect the results.

        Args:
            address: Seed address (defaults to the configured seed)
            depth: Maximum depth (defaults to the configured depth)

        Returns:
            Report with every result and per-kind counts
        """
        address = address if address is not None else self.config.seed_address
        depth = depth if depth is not None else self.config.max_depth

        context = CrawlContext(fetcher=self.fetcher)
        report = CrawlReport(
            seed=address,
            max_depth=depth,
            completion_mode=self.config.completion_mode,
            results=[],
            started_at=datetime.now()
        )
        for result in self.crawl(address, depth, context):
            report.results.append(result)
        report.completed_at = datetime.now()
        report.counts = context.stats.get_summary()
        return report

    def visit(self, task: CrawlTask, context: CrawlContext) -> Tuple[Optional[CrawlResult], List[CrawlTask]]:
        """
        Execute a single crawl task.

        Args:
            task: Address and remaining depth
            context: Shared crawl state

        Returns:
            The task's result (None when the depth is exhausted) and the
            child tasks to spawn
        """
        if task.depth <= 0:
            task.transition(TaskStatus.DEPTH_EXHAUSTED)
            return None, []

        if context.visited.test_and_mark(task.address):
            task.transition(TaskStatus.ALREADY_VISITED)
            logger.debug(f"Skipping already visited {task.address}")
            return self._record(context, CrawlResult.already_visited(task)), []

        try:
            page = context.fetcher.fetch(task.address)
        except FetchError as e:
            task.transition(TaskStatus.FETCH_ERROR)
            logger.info(f"Fetch failed for {task.address}: {e.message}")
            return self._record(context, CrawlResult.error(task, e.message)), []
        except Exception as e:
            task.transition(TaskStatus.FETCH_ERROR)
            logger.exception(f"Fetcher raised unexpectedly for {task.address}")
            return self._record(context, CrawlResult.error(task, f"fetch failed: {task.address}: {e}")), []

        task.transition(TaskStatus.FETCH_SUCCEEDED)
        try:
            result = CrawlResult.found(task, page.content)
            task.transition(TaskStatus.SPAWNING_CHILDREN)
            children = [task.child(link) for link in page.links]
        except Exception as e:
            task.transition(TaskStatus.FETCH_ERROR)
            logger.exception(f"Could not process page {task.address}")
            return self._record(context, CrawlResult.error(task, f"crawl failed for {task.address}: {e}")), []

        logger.debug(f"Fetched {task.address} at depth {task.depth}, {len(children)} links")
        self._record(context, result)
        task.transition(TaskStatus.AWAITING_CHILDREN if children else TaskStatus.DONE)
        return result, children

    @staticmethod
    def _record(context: CrawlContext, result: CrawlResult) -> CrawlResult:
        context.stats.add_result(result)
        return result
