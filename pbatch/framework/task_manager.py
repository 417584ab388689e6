"""
Spawns one task per input item and tracks it until it is joined.

Every task has to pass the :code:`ConcurrencyLimiter` before it is submitted to the
thread pool and gives its slot back when the processing callable returns or raises.
The thread pool is used as a context manager, so leaving :code:`schedule` always
waits for every submitted task, also after an early stop or if the scheduling
thread itself is interrupted.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Generic, Optional, Sequence, TypeVar

from pbatch.framework.error_aggregator import ErrorAggregator, ErrorPolicy
from pbatch.framework.limiter import ConcurrencyLimiter
from pbatch.framework.result_collector import ResultCollector

logger = logging.getLogger("TaskManager")

T = TypeVar("T")
R = TypeVar("R")


class TaskState(Enum):
    """Lifecycle of a single task"""

    PENDING = "pending"
    ADMITTED = "admitted"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    JOINED = "joined"


class RunState(Enum):
    """Lifecycle of one run over all items"""

    SCHEDULING = "scheduling"
    DRAINING = "draining"
    ALL_JOINED = "all_joined"
    FINALIZED = "finalized"


class TaskManager(Generic[T, R]):
    """Runs the processing callable for every item on a bounded thread pool."""

    def __init__(
        self,
        limiter: ConcurrencyLimiter,
        collector: ResultCollector[R],
        aggregator: ErrorAggregator,
        policy: ErrorPolicy,
        metrics,
        name: str = "pbatch",
    ) -> None:
        self._limiter = limiter
        self._collector = collector
        self._aggregator = aggregator
        self._policy = policy
        self._metrics = metrics
        self._name = name
        self._abnormal_lock = threading.Lock()
        self._abnormal: Optional[BaseException] = None
        self.state: Optional[RunState] = None
        self.scheduled = 0

    def _should_stop(self) -> bool:
        if self._abnormal is not None:
            return True
        return self._policy is ErrorPolicy.STOP_ON_ERROR and self._aggregator.has_failed()

    def schedule(self, items: Sequence[T], process: Callable[[T], R]) -> int:
        """Submit a task for every item and wait until all of them are joined.

        Under :code:`ErrorPolicy.STOP_ON_ERROR` no new item is submitted once a failure
        was observed. The check runs after each submission without waiting for the
        running tasks, so some items may still be processed after the first failure.

        Parameters
        ----------
        items : Sequence
            the items to process, the index of an item is its result slot
        process : Callable
            the callable applied to each item

        Returns
        -------
        int
            the number of items which were submitted

        Raises
        ------
        BaseException
            the first exception which is not an :code:`Exception` (e.g.
            :code:`KeyboardInterrupt`) raised by the callable, re-raised after join
        """
        self.state = RunState.SCHEDULING
        with ThreadPoolExecutor(
            max_workers=self._limiter.capacity, thread_name_prefix=self._name
        ) as pool:
            for index, item in enumerate(items):
                self._limiter.acquire()
                try:
                    pool.submit(self._run_task, index, item, process)
                except BaseException:
                    self._limiter.release()
                    raise
                self.scheduled += 1
                logger.debug("Task %s: %s", index, TaskState.PENDING.value)
                if self._should_stop():
                    self.state = RunState.DRAINING
                    logger.warning(
                        "Stopped scheduling after %s of %s items, waiting for %s running tasks",
                        self.scheduled,
                        len(items),
                        self._limiter.in_flight,
                    )
                    break
        self.state = RunState.ALL_JOINED
        logger.debug("All %s tasks %s", self.scheduled, TaskState.JOINED.value)
        if self._abnormal is not None:
            raise self._abnormal
        return self.scheduled

    def _run_task(self, index: int, item: T, process: Callable[[T], R]) -> None:
        logger.debug("Task %s: %s", index, TaskState.ADMITTED.value)
        self._metrics.number_of_tasks_in_flight += 1
        try:
            logger.debug("Task %s: %s", index, TaskState.RUNNING.value)
            with self._metrics.processing_time_per_item.time():
                result = process(item)
        except Exception as error:  # pylint: disable=broad-except
            self._metrics.number_of_failed_items += 1
            self._aggregator.report(error)
            logger.debug("Task %s: %s with %s", index, TaskState.FAILED.value, error)
        except BaseException as error:
            with self._abnormal_lock:
                if self._abnormal is None:
                    self._abnormal = error
            logger.error("Task %s terminated abnormally: %r", index, error)
        else:
            self._collector.store(index, result)
            self._metrics.number_of_processed_items += 1
            logger.debug("Task %s: %s", index, TaskState.SUCCEEDED.value)
        finally:
            self._metrics.number_of_tasks_in_flight -= 1
            self._limiter.release()
