"""
Thread pool used to run crawl tasks.
"""

import threading
from typing import Callable, Any, Dict, Optional
from concurrent.futures import ThreadPoolExecutor, Future

from link_crawler.utils.logging import get_logger
from link_crawler.utils.errors import CrawlerError, PoolClosedError
from .thread_safe import ThreadSafeCounter


logger = get_logger(__name__)


class TaskPool:
    """
    Executor for crawl tasks.

    Every submission is queued immediately; ``max_workers`` caps the number
    of threads running tasks at once, not the number of pending tasks.
    """

    def __init__(self, max_workers: int = 8, name: str = "crawl"):
        """
        Initialize the pool.

        Args:
            max_workers: Maximum number of worker threads
            name: Prefix for worker thread names
        """
        if max_workers < 1:
            raise CrawlerError("max_workers must be at least 1", {"max_workers": max_workers})

        self.max_workers = max_workers
        self.name = name
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=f"{name}-worker")
        self._shutdown = threading.Event()

        self._submitted = ThreadSafeCounter()
        self._completed = ThreadSafeCounter()
        self._failed = ThreadSafeCounter()

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        """
        Schedule a callable on the pool.

        Args:
            fn: Callable to run
            *args: Positional arguments for fn
            **kwargs: Keyword arguments for fn

        Returns:
            Future for the call

        Raises:
            PoolClosedError: If the pool has been shut down
        """
        if self._shutdown.is_set():
            raise PoolClosedError(f"Task pool {self.name} is shut down")

        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError as e:
            # shutdown() ran between the check above and the submit
            raise PoolClosedError(f"Task pool {self.name} is shut down", {"reason": str(e)})

        self._submitted.increment()
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        if future.cancelled():
            self._failed.increment()
            return

        error = future.exception()
        if error is None:
            self._completed.increment()
            return

        self._failed.increment()
        if isinstance(error, PoolClosedError):
            logger.debug(f"Task in pool {self.name} stopped spawning after shutdown")
        else:
            logger.error(f"Task in pool {self.name} raised: {error!r}")

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting tasks and release the worker threads.

        Args:
            wait: Block until running tasks finish
        """
        self._shutdown.set()
        self._executor.shutdown(wait=wait)
        logger.debug(f"Task pool {self.name} shut down: {self.get_stats()}")

    def get_stats(self) -> Dict[str, int]:
        """
        Get pool statistics.

        Returns:
            Submitted, completed and failed task counts
        """
        return {
            "max_workers": self.max_workers,
            "submitted": self._submitted.get_value(),
            "completed": self._completed.get_value(),
            "failed": self._failed.get_value(),
        }

    def __enter__(self) -> "TaskPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> Optional[bool]:
        self.shutdown(wait=True)
        return None
