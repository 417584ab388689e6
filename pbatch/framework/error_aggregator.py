"""
Collection of the failures raised by the processing callable.

How failures are kept depends on the :code:`ErrorPolicy` of the run:

* :code:`stop_on_error` keeps only the first failure. It is returned as is and
  signals the scheduling loop to stop submitting new items.
* :code:`continue_on_error` keeps every failure and returns them wrapped into one
  :code:`AggregateFailure` after all tasks are joined.
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from pbatch.executor_error import AggregateFailure

logger = logging.getLogger("ErrorAggregator")


class ErrorPolicy(Enum):
    """How a run reacts to failing items."""

    STOP_ON_ERROR = "stop_on_error"
    """Stop scheduling new items after the first failure and return only this failure."""
    CONTINUE_ON_ERROR = "continue_on_error"
    """Process every item and return all failures as one AggregateFailure."""


class ErrorAggregator(ABC):
    """Thread safe sink for processing failures"""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @staticmethod
    def from_policy(policy: ErrorPolicy) -> "ErrorAggregator":
        """returns the aggregator implementing the given policy"""
        if policy is ErrorPolicy.STOP_ON_ERROR:
            return FirstFailure()
        if policy is ErrorPolicy.CONTINUE_ON_ERROR:
            return FailureCollection()
        raise TypeError(f"'{policy}' is not an ErrorPolicy")

    @abstractmethod
    def report(self, error: Exception) -> None:
        """records a failure of one item"""

    @abstractmethod
    def has_failed(self) -> bool:
        """non blocking check whether a failure was recorded"""

    @abstractmethod
    def error(self) -> Optional[Exception]:
        """returns the error to hand to the caller, None if nothing failed"""

    @property
    @abstractmethod
    def failure_count(self) -> int:
        """number of recorded failures"""


class FirstFailure(ErrorAggregator):
    """Single slot holder which keeps only the first reported failure."""

    def __init__(self) -> None:
        super().__init__()
        self._error: Optional[Exception] = None
        self._failed = threading.Event()

    def report(self, error: Exception) -> None:
        with self._lock:
            if self._error is not None:
                logger.debug("Dropped failure after first failure: %s", error)
                return
            self._error = error
        self._failed.set()

    def has_failed(self) -> bool:
        return self._failed.is_set()

    def error(self) -> Optional[Exception]:
        with self._lock:
            return self._error

    @property
    def failure_count(self) -> int:
        return int(self.has_failed())


class FailureCollection(ErrorAggregator):
    """Keeps every reported failure in the order the threads reported them."""

    def __init__(self) -> None:
        super().__init__()
        self._errors: List[Exception] = []

    def report(self, error: Exception) -> None:
        with self._lock:
            self._errors.append(error)

    def has_failed(self) -> bool:
        with self._lock:
            return bool(self._errors)

    def error(self) -> Optional[Exception]:
        with self._lock:
            if not self._errors:
                return None
            return AggregateFailure(self._errors)

    @property
    def failure_count(self) -> int:
        with self._lock:
            return len(self._errors)
