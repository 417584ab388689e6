"""
pbatch tracks the work of every executor with
`prometheus python client <https://github.com/prometheus/client_python>`_ metrics,
e.g. :code:`pbatch_number_of_processed_items_total` or
:code:`pbatch_processing_time_per_item_sum`.

The metrics of an executor are labeled with the executor name and are registered on
the :code:`CollectorRegistry` handed to the executor. Without a registry the metrics
are tracked but not exported.

Metrics Overview
================

.. autoclass:: pbatch.executor.Executor.Metrics
   :members:
   :undoc-members:
   :private-members:
   :inherited-members:
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from attrs import asdict, define, field, validators
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from pbatch.util.defaults import DEFAULT_METRIC_PREFIX, DEFAULT_PROCESSING_TIME_BUCKETS


@define(kw_only=True, slots=False)
class Metric(ABC):
    """Metric base class"""

    name: str = field(validator=validators.instance_of(str))
    description: str = field(validator=validators.instance_of(str))
    labels: dict = field(
        validator=[
            validators.instance_of(dict),
            validators.deep_mapping(
                key_validator=validators.instance_of(str),
                value_validator=validators.instance_of(str),
            ),
        ],
        factory=dict,
    )
    _registry: Optional[CollectorRegistry] = field(default=None)
    _prefix: str = field(default=DEFAULT_METRIC_PREFIX)
    tracker: Union[Counter, Histogram, Gauge] = field(init=False, default=None)

    @property
    def fullname(self):
        """returns the fullname"""
        return f"{self._prefix}{self.name}"

    def init_tracker(self) -> None:
        """initializes the prometheus collector for this metric"""
        try:
            if isinstance(self, CounterMetric):
                self.tracker = Counter(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    registry=self._registry,
                )
            if isinstance(self, HistogramMetric):
                self.tracker = Histogram(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    buckets=DEFAULT_PROCESSING_TIME_BUCKETS,
                    registry=self._registry,
                )
            if isinstance(self, GaugeMetric):
                self.tracker = Gauge(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    registry=self._registry,
                )
        except ValueError as error:
            # pylint: disable=protected-access
            self.tracker = self._registry._names_to_collectors.get(self.fullname)
            # pylint: enable=protected-access
            if not isinstance(self.tracker, METRIC_TO_COLLECTOR_TYPE[type(self)]):
                raise ValueError(
                    f"Metric {self.fullname} already exists with different type"
                ) from error
        self.tracker.labels(**self.labels)

    def time(self):
        """Context manager observing the duration of its block"""
        return self.tracker.labels(**self.labels).time()

    @abstractmethod
    def __add__(self, other):
        """Add"""


@define(kw_only=True)
class CounterMetric(Metric):
    """Wrapper for prometheus Counter metric"""

    def __add__(self, other: Any) -> "CounterMetric":
        self.tracker.labels(**self.labels).inc(other)
        return self


@define(kw_only=True)
class HistogramMetric(Metric):
    """Wrapper for prometheus Histogram metric"""

    def __add__(self, other):
        self.tracker.labels(**self.labels).observe(other)
        return self


@define(kw_only=True)
class GaugeMetric(Metric):
    """Wrapper for prometheus Gauge metric

    Adding to a gauge moves it up or down by the given amount, so it can follow a
    value like the number of tasks in flight.
    """

    def __add__(self, other):
        self.tracker.labels(**self.labels).inc(other)
        return self

    def __sub__(self, other):
        self.tracker.labels(**self.labels).dec(other)
        return self


METRIC_TO_COLLECTOR_TYPE = {
    CounterMetric: Counter,
    HistogramMetric: Histogram,
    GaugeMetric: Gauge,
}


@define(kw_only=True)
class BaseMetrics:
    """Base class grouping the metrics of one object under one set of labels"""

    _labels: dict
    _registry: Optional[CollectorRegistry] = field(default=None)

    def __attrs_post_init__(self):
        for attribute in asdict(self, recurse=False):
            attribute = getattr(self, attribute)
            if isinstance(attribute, Metric):
                attribute.labels = self._labels
                attribute._registry = self._registry  # pylint: disable=protected-access
                attribute.init_tracker()
