"""Global configuration and fixtures for all pytest-based tests"""

import threading
import time

import pytest
from prometheus_client import CollectorRegistry


@pytest.fixture
def registry():
    """a fresh prometheus registry for each test"""
    return CollectorRegistry()


class ConcurrencyProbe:
    """Callable which records how many calls run at the same time"""

    def __init__(self, delay: float = 0.05, fail_on=()):
        self.delay = delay
        self.fail_on = set(fail_on)
        self.running = 0
        self.max_running = 0
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, item):
        with self._lock:
            self.running += 1
            self.max_running = max(self.max_running, self.running)
            self.calls.append(item)
        try:
            time.sleep(self.delay)
            if item in self.fail_on:
                raise ValueError(f"error processing item {item}")
            return item * item
        finally:
            with self._lock:
                self.running -= 1


@pytest.fixture
def probe_factory():
    """creates ConcurrencyProbe instances"""
    return ConcurrencyProbe
