"""This module contains errors related to the batch executor."""

from typing import Iterable, List, Optional

from pbatch.abc.exceptions import PbatchException


class ExecutorError(PbatchException):
    """Base class for Executor related exceptions."""


class InvalidConfigurationError(ExecutorError):
    """Raise if the executor configuration is invalid."""


class InvalidBatchSizeError(InvalidConfigurationError):
    """Raise if the batch size can not bound the number of concurrent tasks."""

    def __init__(self, batch_size):
        super().__init__(f"batch_size must be a positive integer, got '{batch_size}'")


class AggregateFailure(ExecutorError):
    """Raise for all processing failures collected during one run.

    Only produced when the executor runs with
    :code:`ErrorPolicy.CONTINUE_ON_ERROR` and at least one item failed.
    The order of :code:`errors` follows the order in which the worker threads
    reported them, which is not the order of the input items.
    """

    errors: List[Exception]

    def __init__(self, errors: Iterable[Exception]) -> None:
        self.errors = list(errors)
        super().__init__("multiple errors: " + "; ".join(str(error) for error in self.errors))


def is_aggregate(error: Optional[BaseException]) -> bool:
    """Check if an error is an :code:`AggregateFailure`. :code:`None` is never one."""
    return isinstance(error, AggregateFailure)


def unwrap(error: Optional[BaseException]) -> List[BaseException]:
    """Return the single failures an error stands for.

    Parameters
    ----------
    error : BaseException, optional
        the error returned by a run

    Returns
    -------
    list
        the collected failures of an :code:`AggregateFailure`, a one element list
        for any other error and an empty list for :code:`None`.
    """
    if error is None:
        return []
    if is_aggregate(error):
        return list(error.errors)
    return [error]
