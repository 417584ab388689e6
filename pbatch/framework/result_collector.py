"""Index addressed result store shared by the worker threads of one run."""

import threading
from copy import copy
from typing import Any, Generic, List, TypeVar

R = TypeVar("R")


class ResultCollector(Generic[R]):
    """Fixed length result slots, one per input item.

    Every slot starts with its own shallow copy of :code:`default` and is written at
    most once by the task processing the item with the same index. Reads and writes
    are serialized by one lock for the whole array.
    """

    def __init__(self, size: int, default: Any = None) -> None:
        self._default = default
        self._slots: List[R] = [copy(default) for _ in range(size)]
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._slots)

    def store(self, index: int, value: R) -> None:
        """write the result of the item at :code:`index`"""
        with self._lock:
            self._slots[index] = value

    def results(self) -> List[R]:
        """returns a copy of all slots in input order"""
        with self._lock:
            return list(self._slots)
