"""
Executors are configured with an :code:`ExecutorConfig`, either directly in python or
loaded from a YAML or JSON file.

..  code-block:: yaml
    :caption: Example of an executor configuration

    name: enrichment
    batch_size: 8
    policy: continue_on_error
    default: null
    logger:
        level: INFO
        loggers:
            "TaskManager": {"level": "DEBUG"}

The key :code:`logger` is optional and only applied by :code:`LoggerConfig.setup_logging`.
"""

import json
import logging
from copy import deepcopy
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Mapping

from attrs import asdict, define, field, validators
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from pbatch.executor_error import InvalidConfigurationError
from pbatch.framework.error_aggregator import ErrorPolicy
from pbatch.util.defaults import (
    CONFIG_FILE_EXTENSIONS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_EXECUTOR_NAME,
    DEFAULT_LOG_CONFIG,
)

logger = logging.getLogger("Config")

yaml = YAML(typ="safe", pure=True)


def _to_policy(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return ErrorPolicy(value.lower())
        except ValueError:
            return value
    return value


@define(kw_only=True)
class LoggerConfig:
    """The logger config class used to set up logging for executors.
    The schema for this class is derived from the python logging module:
    https://docs.python.org/3/library/logging.config.html#dictionary-schema-details
    """

    _LOG_LEVELS = (
        logging.NOTSET,  # 0
        logging.DEBUG,  # 10
        logging.INFO,  # 20
        logging.WARNING,  # 30
        logging.ERROR,  # 40
        logging.CRITICAL,  # 50
    )

    version: int = field(validator=validators.instance_of(int), default=1)
    formatters: dict = field(validator=validators.instance_of(dict), factory=dict)
    filters: dict = field(validator=validators.instance_of(dict), factory=dict)
    handlers: dict = field(validator=validators.instance_of(dict), factory=dict)
    disable_existing_loggers: bool = field(validator=validators.instance_of(bool), default=False)
    level: str = field(
        default="",
        validator=[
            validators.instance_of(str),
            validators.in_(["", *[logging.getLevelName(level) for level in _LOG_LEVELS]]),
        ],
        eq=False,
    )
    """The log level of the root logger. Defaults to the level of the :code:`root` entry in
    :code:`loggers`, which is :code:`INFO` unless configured otherwise."""
    loggers: dict = field(validator=validators.instance_of(dict), factory=dict)
    """The loggers loglevel configuration, merged into the defaults of
    :code:`pbatch.util.defaults.DEFAULT_LOG_CONFIG`."""

    def __attrs_post_init__(self) -> None:
        self._set_defaults()
        loggers = deepcopy(DEFAULT_LOG_CONFIG["loggers"])
        for logger_name, logger_config in self.loggers.items():
            loggers.setdefault(logger_name, {}).update(logger_config)
        self.loggers = loggers
        # an explicit level wins over the level of the root entry in loggers
        if self.level:
            self.loggers["root"].update({"level": self.level})
        else:
            self.level = self.loggers["root"]["level"]

    def _set_defaults(self) -> None:
        """fills every empty key except :code:`loggers` and :code:`level` with the defaults."""
        for key, value in DEFAULT_LOG_CONFIG.items():
            if key == "loggers":
                continue
            if not getattr(self, key):
                setattr(self, key, deepcopy(value))

    def setup_logging(self) -> None:
        """Apply the configuration with :code:`logging.config.dictConfig`."""
        log_config = asdict(self)
        log_config.pop("level")
        dictConfig(log_config)


@define(kw_only=True, frozen=True)
class ExecutorConfig:
    """the configuration of one executor"""

    batch_size: int = field(
        validator=[validators.instance_of(int), validators.ge(1)], default=DEFAULT_BATCH_SIZE
    )
    """Maximum number of items processed at the same time. Defaults to :code:`1`."""
    policy: ErrorPolicy = field(
        validator=validators.instance_of(ErrorPolicy),
        converter=_to_policy,
        default=ErrorPolicy.STOP_ON_ERROR,
    )
    """:code:`stop_on_error` or :code:`continue_on_error`. Defaults to :code:`stop_on_error`."""
    default: Any = field(default=None)
    """Value of the result slots of failed or unscheduled items. Defaults to :code:`None`."""
    name: str = field(validator=validators.instance_of(str), default=DEFAULT_EXECUTOR_NAME)
    """Name of the executor, used as metric label and worker thread name prefix."""
    logger: LoggerConfig = field(
        validator=validators.instance_of(LoggerConfig),
        factory=LoggerConfig,
        converter=lambda x: LoggerConfig(**x) if isinstance(x, dict) else x,
        eq=False,
    )
    """Logger configuration, see :code:`LoggerConfig`."""

    @batch_size.validator
    def _no_bool_batch_size(self, attribute, value) -> None:
        if isinstance(value, bool):
            raise TypeError(f"'{attribute.name}' must be an int, got a bool")

    @classmethod
    def from_dict(cls, config: Mapping) -> "ExecutorConfig":
        """Create a configuration from a mapping.

        Raises
        ------
        InvalidConfigurationError
            If keys are unknown or values do not pass validation.
        """
        if not isinstance(config, Mapping):
            raise InvalidConfigurationError("The configuration must be specified as an object.")
        try:
            return cls(**config)
        except TypeError as error:
            raise InvalidConfigurationError(f"Invalid configuration: {error.args[0]}") from error
        except ValueError as error:
            raise InvalidConfigurationError(f"Invalid configuration: {error}") from error

    @classmethod
    def from_file(cls, path: str | Path) -> "ExecutorConfig":
        """Create a configuration from a YAML or JSON file.

        Parameters
        ----------
        path : str or Path
            path of the configuration file

        Returns
        -------
        config : ExecutorConfig
            the validated configuration
        """
        path = Path(path)
        if path.suffix not in CONFIG_FILE_EXTENSIONS:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {path} must be one of "
                f"{sorted(CONFIG_FILE_EXTENSIONS)}"
            )
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as error:
            raise InvalidConfigurationError(
                f"Configuration file does not exist: {error.filename}"
            ) from error
        except (OSError, UnicodeDecodeError) as error:
            raise InvalidConfigurationError(
                f"Configuration file can not be read: {path} {error}"
            ) from error
        try:
            if path.suffix == ".json":
                config = json.loads(content)
            else:
                config = yaml.load(content)
        except (json.JSONDecodeError, YAMLError) as error:
            raise InvalidConfigurationError(f"Invalid yaml or json file: {path} {error}") from error
        logger.debug("Loaded executor configuration from %s", path)
        return cls.from_dict(config or {})
