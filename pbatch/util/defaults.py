"""Default values for pbatch."""

DEFAULT_BATCH_SIZE = 1
DEFAULT_EXECUTOR_NAME = "pbatch"
DEFAULT_LOG_FORMAT = "%(asctime)-15s %(threadName)-24s %(name)-15s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_METRIC_PREFIX = "pbatch_"
DEFAULT_PROCESSING_TIME_BUCKETS = (0.001, 0.01, 0.1, 1, 10, 60)
CONFIG_FILE_EXTENSIONS = {".yml", ".yaml", ".json"}

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "pbatch": {
            "class": "pbatch.util.logging.PbatchFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "pbatch",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "Executor": {"level": "INFO"},
        "TaskManager": {"level": "INFO"},
        "ErrorAggregator": {"level": "INFO"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
