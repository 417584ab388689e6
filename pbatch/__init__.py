"""pbatch runs a callable on a batch of items in parallel with bounded concurrency."""

from pbatch.executor import Executor, RunResult, process, run
from pbatch.executor_error import (
    AggregateFailure,
    ExecutorError,
    InvalidConfigurationError,
    is_aggregate,
    unwrap,
)
from pbatch.framework.error_aggregator import ErrorPolicy
from pbatch.util.configuration import ExecutorConfig

__all__ = [
    "AggregateFailure",
    "ErrorPolicy",
    "Executor",
    "ExecutorConfig",
    "ExecutorError",
    "InvalidConfigurationError",
    "RunResult",
    "is_aggregate",
    "process",
    "run",
    "unwrap",
]
