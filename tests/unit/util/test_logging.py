# pylint: disable=missing-docstring
import logging
import logging.config
from socket import gethostname

from pbatch.util.defaults import DEFAULT_LOG_CONFIG
from pbatch.util.logging import PbatchFormatter


class TestLogDictConfig:
    """this tests the pbatch.util.defaults.DEFAULT_LOG_CONFIG dict"""

    def setup_method(self):
        logging.config.dictConfig(DEFAULT_LOG_CONFIG)

    def test_root_logger_uses_pbatch_formatter(self):
        root = logging.getLogger()
        handlers = [
            handler for handler in root.handlers if isinstance(handler.formatter, PbatchFormatter)
        ]
        assert len(handlers) == 1

    def test_component_loggers_have_default_levels(self):
        for name in ("Executor", "TaskManager", "ErrorAggregator"):
            assert logging.getLogger(name).level == logging.INFO


class TestPbatchFormatter:
    def create_record(self):
        return logging.LogRecord(
            name="Executor",
            level=logging.INFO,
            pathname="executor.py",
            lineno=1,
            msg="processing %s items",
            args=(3,),
            exc_info=None,
        )

    def test_formatter_init_with_default(self):
        default_formatter_config = DEFAULT_LOG_CONFIG["formatters"]["pbatch"]
        formatter = PbatchFormatter(
            fmt=default_formatter_config["format"], datefmt=default_formatter_config["datefmt"]
        )
        formatted = formatter.format(self.create_record())
        assert "Executor" in formatted
        assert "processing 3 items" in formatted

    def test_format_adds_hostname(self):
        formatter = PbatchFormatter("%(hostname)s")
        assert formatter.format(self.create_record()) == gethostname()

    def test_format_adds_active_threads(self):
        formatter = PbatchFormatter("%(active_threads)s")
        assert int(formatter.format(self.create_record())) >= 1
