# pylint: disable=missing-docstring
# pylint: disable=attribute-defined-outside-init
import threading

import pytest

from pbatch.executor_error import AggregateFailure
from pbatch.framework.error_aggregator import (
    ErrorAggregator,
    ErrorPolicy,
    FailureCollection,
    FirstFailure,
)


class TestErrorPolicy:
    def test_has_two_policies(self):
        assert [policy.value for policy in ErrorPolicy] == ["stop_on_error", "continue_on_error"]

    @pytest.mark.parametrize(
        "policy, expected",
        [
            (ErrorPolicy.STOP_ON_ERROR, FirstFailure),
            (ErrorPolicy.CONTINUE_ON_ERROR, FailureCollection),
        ],
    )
    def test_from_policy_selects_aggregator(self, policy, expected):
        assert isinstance(ErrorAggregator.from_policy(policy), expected)

    def test_from_policy_rejects_non_policies(self):
        with pytest.raises(TypeError, match="is not an ErrorPolicy"):
            ErrorAggregator.from_policy(True)


class TestFirstFailure:
    def setup_method(self):
        self.aggregator = FirstFailure()

    def test_no_error_without_report(self):
        assert not self.aggregator.has_failed()
        assert self.aggregator.error() is None
        assert self.aggregator.failure_count == 0

    def test_keeps_first_failure(self):
        first = ValueError("first")
        self.aggregator.report(first)
        self.aggregator.report(ValueError("second"))
        assert self.aggregator.has_failed()
        assert self.aggregator.error() is first
        assert self.aggregator.failure_count == 1

    def test_keeps_exactly_one_of_concurrent_reports(self):
        errors = [ValueError(str(index)) for index in range(50)]
        threads = [threading.Thread(target=self.aggregator.report, args=(e,)) for e in errors]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert any(self.aggregator.error() is error for error in errors)
        assert self.aggregator.failure_count == 1


class TestFailureCollection:
    def setup_method(self):
        self.aggregator = FailureCollection()

    def test_no_error_without_report(self):
        assert not self.aggregator.has_failed()
        assert self.aggregator.error() is None

    def test_wraps_every_failure(self):
        errors = [ValueError("a"), KeyError("b")]
        for error in errors:
            self.aggregator.report(error)
        aggregate = self.aggregator.error()
        assert isinstance(aggregate, AggregateFailure)
        assert aggregate.errors == errors
        assert self.aggregator.failure_count == 2

    def test_wraps_single_failure(self):
        self.aggregator.report(ValueError("only"))
        assert self.aggregator.has_failed()
        assert self.aggregator.error().errors[0].args == ("only",)

    def test_collects_concurrent_reports(self):
        threads = [
            threading.Thread(target=self.aggregator.report, args=(ValueError(str(index)),))
            for index in range(100)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert sorted(int(str(error)) for error in self.aggregator.error().errors) == list(
            range(100)
        )
