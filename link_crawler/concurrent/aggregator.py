"""
Result aggregation and completion detection for crawl tasks.

A crawl fans out into a tree of tasks whose size is only known once it has
finished. Aggregators run those tasks on a ``TaskPool``, merge their
results into a single iterator and end that iterator exactly once, after
the last task has delivered its result.

Two strategies are provided:

- ``CountedAggregator`` keeps an in-flight task counter. A child is counted
  by its parent before the parent finishes, so the counter cannot reach zero
  while any task can still spawn. The task that brings it to zero enqueues
  the end-of-crawl marker behind every result.
- ``StructuralAggregator`` has each task resolve to its own result plus the
  futures of its children. Draining that future tree depth-first yields a
  parent's result before its children's, and the crawl is complete when the
  tree is exhausted.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple
from concurrent.futures import Future

from link_crawler.utils.logging import get_logger
from link_crawler.utils.errors import CompletionError
from .models import CrawlResult, CrawlTask
from .thread_pool import TaskPool
from .thread_safe import ThreadSafeCounter, ThreadSafeQueue


logger = get_logger(__name__)

# Visit function: runs one task and returns its result (None when the depth
# is exhausted) plus the child tasks to spawn.
TaskVisitor = Callable[[CrawlTask], Tuple[Optional[CrawlResult], List[CrawlTask]]]

# Receives the error results aggregators create for visitors that raise.
FailureRecorder = Callable[[CrawlResult], None]


class _CrawlComplete:
    """End-of-crawl marker placed on the result queue."""

    def __repr__(self) -> str:
        return "<crawl complete>"


CRAWL_COMPLETE = _CrawlComplete()


def _visit_safely(visit: TaskVisitor, task: CrawlTask,
                  on_failure: Optional[FailureRecorder] = None) -> Tuple[Optional[CrawlResult], List[CrawlTask]]:
    """Run a visitor, turning any unexpected exception into an error result."""
    try:
        return visit(task)
    except Exception as e:
        logger.exception(f"Unexpected failure while crawling {task.address}")
        result = CrawlResult.error(task, f"crawl failed for {task.address}: {e}")
        if on_failure is not None:
            on_failure(result)
        return result, []


class CountedAggregator:
    """Aggregates results with a shared in-flight task counter."""

    mode = "counted"

    def __init__(self, pool: TaskPool, visit: TaskVisitor, on_failure: Optional[FailureRecorder] = None):
        """
        Args:
            pool: Pool the tasks run on
            visit: Function executing a single task
            on_failure: Called with the error result of a visitor that raised
        """
        self._pool = pool
        self._visit = visit
        self._on_failure = on_failure
        self._results = ThreadSafeQueue()
        self._in_flight = ThreadSafeCounter()
        self._started = False
        self._finished = False

    @property
    def in_flight(self) -> int:
        return self._in_flight.get_value()

    def start(self, root: CrawlTask) -> None:
        """Submit the root task. May be called once."""
        if self._started:
            raise CompletionError("Aggregator already started")
        self._started = True
        self._spawn(root)

    def _spawn(self, task: CrawlTask) -> None:
        # Count first: the spawning task is still running, so the counter
        # stays above zero until the child is accounted for.
        self._in_flight.increment()
        try:
            self._pool.submit(self._run, task)
        except Exception:
            self._task_finished()
            raise

    def _run(self, task: CrawlTask) -> None:
        try:
            result, children = _visit_safely(self._visit, task, self._on_failure)
            if result is not None:
                self._results.put(result)
            for child in children:
                self._spawn(child)
        finally:
            self._task_finished()

    def _task_finished(self) -> None:
        remaining = self._in_flight.decrement()
        if remaining < 0:
            raise CompletionError("In-flight task counter went negative", {"in_flight": remaining})
        if remaining == 0:
            self._results.put(CRAWL_COMPLETE)

    def results(self) -> Iterator[CrawlResult]:
        """
        Yield results as tasks produce them until the crawl completes.

        Blocks between results; returns once the end-of-crawl marker is seen.
        """
        if not self._started:
            raise CompletionError("Aggregator has not been started")
        if self._finished:
            return
        while True:
            item = self._results.get()
            if item is CRAWL_COMPLETE:
                self._finished = True
                logger.debug(f"Counted crawl complete: {self._results.get_stats()}")
                return
            yield item


@dataclass
class TaskOutcome:
    """A finished task's result and the futures of the children it spawned."""
    result: Optional[CrawlResult]
    children: List[Future] = field(default_factory=list)


class StructuralAggregator:
    """Aggregates results by walking the tree of task futures."""

    mode = "structural"

    def __init__(self, pool: TaskPool, visit: TaskVisitor, on_failure: Optional[FailureRecorder] = None):
        """
        Args:
            pool: Pool the tasks run on
            visit: Function executing a single task
            on_failure: Called with the error result of a visitor that raised
        """
        self._pool = pool
        self._visit = visit
        self._on_failure = on_failure
        self._root: Optional[Future] = None
        self._finished = False

    def start(self, root: CrawlTask) -> None:
        """Submit the root task. May be called once."""
        if self._root is not None:
            raise CompletionError("Aggregator already started")
        self._root = self._spawn(root)

    def _spawn(self, task: CrawlTask) -> Future:
        return self._pool.submit(self._run, task)

    def _run(self, task: CrawlTask) -> TaskOutcome:
        result, children = _visit_safely(self._visit, task, self._on_failure)
        return TaskOutcome(result, [self._spawn(child) for child in children])

    def results(self) -> Iterator[CrawlResult]:
        """
        Yield each task's result followed by its children's, depth-first.

        Every future in the tree is joined before the iterator ends.
        """
        if self._root is None:
            raise CompletionError("Aggregator has not been started")
        if self._finished:
            return
        pending = [self._root]
        while pending:
            outcome: TaskOutcome = pending.pop().result()
            if outcome.result is not None:
                yield outcome.result
            pending.extend(reversed(outcome.children))
        self._finished = True
        logger.debug("Structural crawl complete")


AGGREGATORS = {
    CountedAggregator.mode: CountedAggregator,
    StructuralAggregator.mode: StructuralAggregator,
}


def create_aggregator(mode: str, pool: TaskPool, visit: TaskVisitor,
                      on_failure: Optional[FailureRecorder] = None):
    """
    Build the aggregator for a completion mode.

    Args:
        mode: "counted" or "structural"
        pool: Pool the tasks run on
        visit: Function executing a single task
        on_failure: Called with the error result of a visitor that raised

    Raises:
        CompletionError: If the mode is unknown
    """
    try:
        aggregator_cls = AGGREGATORS[mode]
    except KeyError:
        raise CompletionError(f"Unknown completion mode: {mode}", {"known": sorted(AGGREGATORS)})
    return aggregator_cls(pool, visit, on_failure)
