"""helper classes for pbatch logging"""

import logging
import threading
from socket import gethostname


class PbatchFormatter(logging.Formatter):
    """
    A custom formatter for pbatch logging with additional attributes.

    The Formatter can be initialized with a format string which makes use of
    knowledge of the LogRecord attributes. The available attributes are listed in the
    `python documentation <https://docs.python.org/3/library/logging.html#logrecord-attributes>`_ .
    Additionally, the formatter provides the following pbatch specific attributes:

    .. table::

        +-----------------------+--------------------------------------------------+
        | attribute             | description                                      |
        +=======================+==================================================+
        | %(hostname)           | The hostname of the machine where the log was    |
        |                       | emitted                                          |
        +-----------------------+--------------------------------------------------+
        | %(active_threads)     | Number of threads alive when the log was emitted,|
        |                       | worker threads of running executors included     |
        +-----------------------+--------------------------------------------------+

    """

    def format(self, record):
        record.hostname = gethostname()
        record.active_threads = threading.active_count()
        return super().format(record)
