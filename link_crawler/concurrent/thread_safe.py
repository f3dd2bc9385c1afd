"""
Thread-safe data structures shared by concurrent crawl tasks.
"""

import queue
import threading
from typing import Any, Optional, Set, Iterator


class ThreadSafeCounter:
    """Thread-safe counter with atomic operations."""

    def __init__(self, initial_value: int = 0):
        """
        Initialize counter with initial value.

        Args:
            initial_value: Starting value for the counter
        """
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """
        Atomically increment counter and return new value.

        Args:
            amount: Amount to increment by (default: 1)

        Returns:
            New counter value after increment
        """
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        """
        Atomically decrement counter and return new value.

        Args:
            amount: Amount to decrement by (default: 1)

        Returns:
            New counter value after decrement
        """
        with self._lock:
            self._value -= amount
            return self._value

    def get_value(self) -> int:
        """
        Get current counter value.

        Returns:
            Current counter value
        """
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"ThreadSafeCounter(value={self.get_value()})"


class ThreadSafeQueue:
    """Unbounded FIFO queue that keeps put/get statistics."""

    def __init__(self):
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._put_count = 0
        self._get_count = 0

    def put(self, item: Any) -> None:
        """
        Put item into queue. Never blocks.

        Args:
            item: Item to put in queue
        """
        self._queue.put(item)
        with self._lock:
            self._put_count += 1

    def get(self, timeout: Optional[float] = None) -> Any:
        """
        Get item from queue.

        Args:
            timeout: Optional timeout in seconds

        Returns:
            Item from queue

        Raises:
            queue.Empty: If queue is empty and timeout expires
        """
        item = self._queue.get(timeout=timeout)
        with self._lock:
            self._get_count += 1
        return item

    def qsize(self) -> int:
        """Get approximate queue size."""
        return self._queue.qsize()

    def get_stats(self) -> dict:
        """
        Get queue statistics.

        Returns:
            Dictionary with queue statistics
        """
        with self._lock:
            return {
                "size": self.qsize(),
                "put_count": self._put_count,
                "get_count": self._get_count,
                "pending_items": self._put_count - self._get_count
            }

    def __len__(self) -> int:
        return self.qsize()


class VisitedSet:
    """
    Grow-only set of addresses already claimed by a crawl task.

    ``test_and_mark`` is the only way in: the membership test and the
    insertion happen under one lock, so of any number of concurrent callers
    for the same address exactly one sees ``False``.
    """

    def __init__(self):
        self._visited: Set[str] = set()
        self._lock = threading.Lock()

    def test_and_mark(self, address: str) -> bool:
        """
        Mark an address as visited.

        Args:
            address: Address to mark

        Returns:
            True if the address was already marked, False if this call
            marked it
        """
        with self._lock:
            if address in self._visited:
                return True
            self._visited.add(address)
            return False

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._visited

    def __len__(self) -> int:
        with self._lock:
            return len(self._visited)

    def snapshot(self) -> Set[str]:
        """
        Get a copy of the visited addresses.

        Returns:
            Copy of the internal set
        """
        with self._lock:
            return self._visited.copy()

    def __iter__(self) -> Iterator[str]:
        # Iterates over a snapshot
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"VisitedSet(size={len(self)})"
