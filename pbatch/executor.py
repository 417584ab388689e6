"""
The executor runs a processing callable on every item of a batch in parallel while
never more than :code:`batch_size` items are processed at the same time.

Example
-------

..  code-block:: python

    from pbatch import ErrorPolicy, run, unwrap

    def square(number):
        if number == 3:
            raise ValueError("error processing item 3")
        return number * number

    results, error = run([1, 2, 3, 4, 5], 2, ErrorPolicy.CONTINUE_ON_ERROR, square, default=0)
    # results == [1, 4, 0, 16, 25]
    # unwrap(error) == [ValueError("error processing item 3")]

A failure is an :code:`Exception` raised by the callable. With
:code:`ErrorPolicy.STOP_ON_ERROR` the first failure is returned unchanged together
with an empty result list. With :code:`ErrorPolicy.CONTINUE_ON_ERROR` every item is
processed, failed items keep the :code:`default` value and all failures are returned
as one :code:`AggregateFailure`.
"""

import logging
from functools import cached_property
from typing import Any, Callable, Generic, Iterable, List, NamedTuple, Optional, TypeVar

from attrs import define, field
from prometheus_client import CollectorRegistry

from pbatch.framework.error_aggregator import ErrorAggregator, ErrorPolicy
from pbatch.framework.limiter import ConcurrencyLimiter
from pbatch.framework.result_collector import ResultCollector
from pbatch.framework.task_manager import RunState, TaskManager
from pbatch.metrics.metrics import BaseMetrics, CounterMetric, GaugeMetric, HistogramMetric
from pbatch.util.configuration import ExecutorConfig

logger = logging.getLogger("Executor")

T = TypeVar("T")
R = TypeVar("R")


class RunResult(NamedTuple):
    """Outcome of one run: the results in input order and the error, if any"""

    results: List[Any]
    """results in input order, items are of the result type of the processing callable"""
    error: Optional[Exception]

    def raise_for_error(self) -> List[Any]:
        """raises the error of the run if there is one, otherwise returns the results"""
        if self.error is not None:
            raise self.error
        return self.results


class Executor(Generic[T, R]):
    """Bounded parallel batch executor

    The executor does not configure logging. To apply the :code:`logger` section of the
    configuration call :code:`config.logger.setup_logging()` once at application start.
    """

    @define(kw_only=True)
    class Metrics(BaseMetrics):
        """Tracks statistics about an executor"""

        number_of_processed_items: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of items processed without failure",
                name="number_of_processed_items",
            )
        )
        """Number of items processed without failure"""
        number_of_failed_items: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of items for which the processing callable raised",
                name="number_of_failed_items",
            )
        )
        """Number of items for which the processing callable raised"""
        number_of_skipped_items: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of items not scheduled after an early stop",
                name="number_of_skipped_items",
            )
        )
        """Number of items not scheduled after an early stop"""
        processing_time_per_item: HistogramMetric = field(
            factory=lambda: HistogramMetric(
                description="Time in seconds that it took to process an item",
                name="processing_time_per_item",
            )
        )
        """Time in seconds that it took to process an item"""
        number_of_tasks_in_flight: GaugeMetric = field(
            factory=lambda: GaugeMetric(
                description="Number of tasks currently holding a limiter slot",
                name="number_of_tasks_in_flight",
            )
        )
        """Number of tasks currently holding a limiter slot"""

    def __init__(
        self, config: ExecutorConfig, registry: Optional[CollectorRegistry] = None
    ) -> None:
        self._config = config
        self._registry = registry
        self.state: Optional[RunState] = None
        """state of the latest run, :code:`RunState.FINALIZED` once it returned"""

    @property
    def config(self) -> ExecutorConfig:
        """the configuration of this executor"""
        return self._config

    @property
    def metric_labels(self) -> dict:
        """Labels for the metrics"""
        return {"executor": self._config.name}

    @cached_property
    def metrics(self) -> "Executor.Metrics":
        """create and return metrics object"""
        return self.Metrics(labels=self.metric_labels, registry=self._registry)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._config.name}, "
            f"batch_size={self._config.batch_size}, policy={self._config.policy.value})"
        )

    def run(self, items: Iterable[T], process: Callable[[T], R]) -> RunResult:
        """Run :code:`process` on every item, at most :code:`batch_size` at a time.

        Parameters
        ----------
        items : Iterable
            the items to process, consumed once before the first task starts
        process : Callable
            the callable applied to each item, a raised :code:`Exception` is a failure

        Returns
        -------
        RunResult
            :code:`(results, error)` as described in the module documentation
        """
        return self._run(list(items), process, self._config.policy)

    def process(self, items: Iterable[T], process: Callable[[T], object]) -> Optional[Exception]:
        """Run :code:`process` on every item and discard the results.

        Always stops at the first failure, regardless of the configured policy.

        Returns
        -------
        Exception or None
            the first failure
        """

        def discard_result(item: T) -> None:
            process(item)

        return self._run(list(items), discard_result, ErrorPolicy.STOP_ON_ERROR).error

    def _run(self, items: List[T], process: Callable[[T], R], policy: ErrorPolicy) -> RunResult:
        limiter = ConcurrencyLimiter(self._config.batch_size)
        collector: ResultCollector[R] = ResultCollector(len(items), self._config.default)
        aggregator = ErrorAggregator.from_policy(policy)
        manager: TaskManager[T, R] = TaskManager(
            limiter, collector, aggregator, policy, self.metrics, name=self._config.name
        )
        logger.info(
            "Start processing %s items with %s (batch_size=%s, policy=%s)",
            len(items),
            self._config.name,
            self._config.batch_size,
            policy.value,
        )
        self.state = RunState.SCHEDULING
        try:
            scheduled = manager.schedule(items, process)
        finally:
            self.state = manager.state
        if scheduled < len(items):
            self.metrics.number_of_skipped_items += len(items) - scheduled
        error = aggregator.error()
        self.state = RunState.FINALIZED
        logger.info(
            "Finished processing %s of %s items with %s failures",
            scheduled,
            len(items),
            aggregator.failure_count,
        )
        if error is None:
            return RunResult(collector.results(), None)
        if policy is ErrorPolicy.STOP_ON_ERROR:
            return RunResult([], error)
        return RunResult(collector.results(), error)


def _create_executor(batch_size: int, policy: ErrorPolicy, default=None) -> Executor:
    return Executor(
        ExecutorConfig.from_dict({"batch_size": batch_size, "policy": policy, "default": default})
    )


def run(  # pylint: disable=redefined-outer-name
    items: Iterable[T],
    batch_size: int,
    policy: ErrorPolicy,
    process: Callable[[T], R],
    default: Optional[R] = None,
) -> RunResult:
    """Run :code:`process` on every item in parallel, :code:`batch_size` items at a time.

    Parameters
    ----------
    items : Iterable
        the items to process
    batch_size : int
        maximum number of items processed at the same time, must be >= 1
    policy : ErrorPolicy
        :code:`ErrorPolicy.STOP_ON_ERROR` or :code:`ErrorPolicy.CONTINUE_ON_ERROR`
    process : Callable
        the callable applied to each item
    default : optional
        result value of failed items, defaults to :code:`None`

    Returns
    -------
    RunResult
        the results in input order and the first failure (stop on error) or an
        :code:`AggregateFailure` of all failures (continue on error)

    Raises
    ------
    InvalidConfigurationError
        If batch_size or policy are invalid.
    """
    return _create_executor(batch_size, policy, default).run(items, process)


def process(  # pylint: disable=redefined-outer-name
    items: Iterable[T], batch_size: int, process: Callable[[T], object]
) -> Optional[Exception]:
    """Run :code:`process` on every item in parallel and discard the results.

    Stops scheduling at the first failure and returns it, :code:`None` if all items
    were processed.
    """
    return _create_executor(batch_size, ErrorPolicy.STOP_ON_ERROR).process(items, process)
