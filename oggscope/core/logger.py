# logger.py
import json
import logging
import logging.config
import pathlib
from typing import Any, Dict, Optional

LOGGER_NAME = "oggscope"

DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
        "json": {
            "()": "oggscope.core.logger.JSONFormatter",
            "max_length": 256,
            "fmt_keys": {
                "level": "levelname",
                "message": "message",
                "timestamp": "asctime",
                "logger": "name",
                "module": "module",
                "line": "lineno",
                "extra": "extra",
            },
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        LOGGER_NAME: {
            "level": "WARNING",
            "handlers": ["stderr"],
            "propagate": False,
        },
    },
}


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def setup_logging(
    level: str = "WARNING",
    json_output: bool = False,
    config_file: Optional[pathlib.Path] = None,
) -> logging.Logger:
    """Configure the package logger.

    A JSON ``dictConfig`` file wins over everything else. Without one the
    built-in configuration is used with ``level`` applied and the stderr
    handler switched to the JSON formatter when ``json_output`` is set.
    """
    logger = logging.getLogger(LOGGER_NAME)

    if config_file is not None:
        with open(config_file) as f_in:
            logging_config: Dict[str, Any] = json.load(f_in)
    else:
        logging_config = json.loads(json.dumps(DEFAULT_LOGGING_CONFIG))
        logging_config["loggers"][LOGGER_NAME]["level"] = level.upper()
        if json_output:
            logging_config["handlers"]["stderr"]["formatter"] = "json"

    logging.config.dictConfig(logging_config)
    return logger


# Attributes every LogRecord carries, plus the ones formatters add.
LOG_RECORD_BUILTIN_ATTRS: set[str] = set(vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))) | {
    "asctime",
    "extra",
    "message",
    "taskName",
}


def truncate_dict(d: Any, max_length: int = 0) -> Any:
    if isinstance(d, dict):
        return {key: truncate_dict(value, max_length) for key, value in d.items()}
    elif isinstance(d, (list, tuple, set)):
        return type(d)(truncate_dict(item, max_length) for item in d)
    else:
        return truncate_value(d, max_length)


def truncate_value(value: Any, max_length: int = 0) -> Any:
    if isinstance(value, BaseException):
        return str(value)
    elif isinstance(value, (bytes, bytearray, memoryview)):
        value_str: str = bytes(value).hex()
    elif isinstance(value, (int, float, bool)) or value is None:
        return value
    else:
        value_str = str(value)
    if max_length > 0 and len(value_str) > max_length:
        return value_str[:max_length] + '...'
    return value_str


class JSONFormatter(logging.Formatter):
    """One JSON object per record, keys mapped from ``LogRecord`` attributes.

    Passing ``extra={...}`` to a log call lands under the ``extra`` key when
    ``fmt_keys`` maps something to ``"extra"``. Byte values are rendered as hex.
    """

    def __init__(
        self,
        datefmt: str = '%Y-%m-%dT%H:%M:%S%z',
        max_length: int = 0,
        fmt_keys: Optional[Dict[str, str]] = None,
        *args: Any,
        **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self.datefmt: str = datefmt
        self.max_length: int = max_length
        self.fmt_keys: Dict[str, str] = fmt_keys or {}

        for key, value in self.fmt_keys.items():
            if value not in LOG_RECORD_BUILTIN_ATTRS:
                raise ValueError(f"Invalid value '{value}' in fmt_keys")

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {}

        for key, value in self.fmt_keys.items():
            if value == 'asctime':
                log_record[key] = self.formatTime(record, self.datefmt)
            elif value == 'message':
                log_record[key] = record.getMessage()
            elif value == 'extra':
                extra: Dict[str, Any] = {
                    k: v for k, v in record.__dict__.items()
                    if k not in LOG_RECORD_BUILTIN_ATTRS and not k.startswith('_')
                }
                if extra:
                    log_record[key] = extra
            else:
                log_record[key] = getattr(record, value, None)

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        truncated: Dict[str, Any] = truncate_dict(log_record, self.max_length)
        return json.dumps(truncated, default=str)
