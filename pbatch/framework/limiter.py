"""Admission gate bounding the number of simultaneously running tasks."""

import threading

from pbatch.executor_error import InvalidBatchSizeError


class ConcurrencyLimiter:
    """Counting gate admitting at most :code:`capacity` holders at a time.

    Parameters
    ----------
    capacity : int
        Maximum number of holders. Must be >= 1, a non-positive capacity could
        never admit a task.

    Raises
    ------
    InvalidBatchSizeError
        If capacity is not a positive integer.
    """

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise InvalidBatchSizeError(capacity)
        self.capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._holders = 0

    @property
    def in_flight(self) -> int:
        """number of current holders"""
        with self._lock:
            return self._holders

    def acquire(self) -> None:
        """Block until a slot is free and take it."""
        self._semaphore.acquire()
        with self._lock:
            self._holders += 1

    def release(self) -> None:
        """Free one slot. Releasing more often than acquiring raises ValueError."""
        with self._lock:
            self._semaphore.release()
            self._holders -= 1

    def __enter__(self) -> "ConcurrencyLimiter":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()
