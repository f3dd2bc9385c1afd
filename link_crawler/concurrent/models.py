"""
Data models for the concurrent link crawler.
"""

import itertools
import threading
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
from datetime import datetime
from enum import Enum


_task_ids = itertools.count(1)


class TaskStatus(Enum):
    """Crawl task lifecycle state."""
    PENDING = "pending"
    DEPTH_EXHAUSTED = "depth_exhausted"
    ALREADY_VISITED = "already_visited"
    FETCH_ERROR = "fetch_error"
    FETCH_SUCCEEDED = "fetch_succeeded"
    SPAWNING_CHILDREN = "spawning_children"
    AWAITING_CHILDREN = "awaiting_children"
    DONE = "done"


class ResultKind(Enum):
    """Outcome category of a single crawl task attempt."""
    FOUND = "found"
    ALREADY_VISITED = "already_visited"
    ERROR = "error"


@dataclass
class CrawlTask:
    """One unit of crawl work: an address and the depth left to explore."""
    address: str
    depth: int
    parent: Optional[str] = None
    task_id: int = field(default_factory=lambda: next(_task_ids))
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def child(self, address: str) -> "CrawlTask":
        """Create the task for a link discovered on this task's page."""
        return CrawlTask(address=address, depth=self.depth - 1, parent=self.address)

    def transition(self, status: TaskStatus) -> None:
        """Move the task to a new lifecycle state."""
        self.status = status
        if status in (TaskStatus.DEPTH_EXHAUSTED, TaskStatus.ALREADY_VISITED,
                      TaskStatus.FETCH_ERROR, TaskStatus.DONE):
            self.completed_at = datetime.now()

    @property
    def is_terminal(self) -> bool:
        return self.status not in (TaskStatus.PENDING, TaskStatus.AWAITING_CHILDREN,
                                   TaskStatus.FETCH_SUCCEEDED, TaskStatus.SPAWNING_CHILDREN)


@dataclass
class CrawlResult:
    """Outcome of one crawl task attempt."""
    kind: ResultKind
    address: str
    depth: int
    content: Optional[str] = None
    message: Optional[str] = None
    parent: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def found(cls, task: CrawlTask, content: str) -> "CrawlResult":
        return cls(ResultKind.FOUND, task.address, task.depth, content=content, parent=task.parent)

    @classmethod
    def already_visited(cls, task: CrawlTask) -> "CrawlResult":
        return cls(ResultKind.ALREADY_VISITED, task.address, task.depth, parent=task.parent)

    @classmethod
    def error(cls, task: CrawlTask, message: str) -> "CrawlResult":
        return cls(ResultKind.ERROR, task.address, task.depth, message=message, parent=task.parent)

    def format(self) -> str:
        """Render the result as a single human-readable line."""
        if self.kind is ResultKind.FOUND:
            escaped = (self.content or "").replace("\\", "\\\\").replace('"', '\\"')
            return f'found: {self.address} "{escaped}"'
        if self.kind is ResultKind.ALREADY_VISITED:
            return f"already fetched {self.address}"
        return self.message or f"error: {self.address}"

    def __str__(self) -> str:
        return self.format()


@dataclass
class CrawlReport:
    """Overall result of one crawl invocation."""
    seed: str
    max_depth: int
    completion_mode: str
    results: List[CrawlResult]
    started_at: datetime
    completed_at: Optional[datetime] = None
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def execution_time(self) -> float:
        """Wall clock duration in seconds."""
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def of_kind(self, kind: ResultKind) -> List[CrawlResult]:
        return [r for r in self.results if r.kind is kind]

    @property
    def found(self) -> List[CrawlResult]:
        return self.of_kind(ResultKind.FOUND)

    @property
    def errors(self) -> List[CrawlResult]:
        return self.of_kind(ResultKind.ERROR)

    @property
    def already_visited(self) -> List[CrawlResult]:
        return self.of_kind(ResultKind.ALREADY_VISITED)


class CrawlStatsCollector:
    """Thread-safe collector for per-task crawl results."""

    def __init__(self):
        """Initialize result collector."""
        self._results: List[CrawlResult] = []
        self._counts: Dict[ResultKind, int] = {kind: 0 for kind in ResultKind}
        self._lock = threading.Lock()

    def add_result(self, result: CrawlResult) -> None:
        """
        Add a task result to the collection.

        Args:
            result: Task result to add
        """
        with self._lock:
            self._results.append(result)
            self._counts[result.kind] += 1

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary statistics of all results.

        Returns:
            Dictionary with counts per result kind and in total
        """
        with self._lock:
            summary: Dict[str, Any] = {kind.value: count for kind, count in self._counts.items()}
            summary["total"] = len(self._results)
            summary["unique_addresses"] = len({r.address for r in self._results})
            return summary
