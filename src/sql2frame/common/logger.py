import logging
import json
import contextvars
from contextlib import contextmanager

_ref_id_ctx = contextvars.ContextVar("ref_id", default=None)


class QueryContextFilter(logging.Filter):
    """Injects the query ref_id from contextvar into the log record."""
    def filter(self, record):
        record.ref_id = _ref_id_ctx.get()
        return True


@contextmanager
def query_context(ref_id: str):
    """Context manager to set the query ref_id for the current context."""
    token = _ref_id_ctx.set(ref_id)
    try:
        yield
    finally:
        _ref_id_ctx.reset(token)


class JsonFormatter(logging.Formatter):
    """Formatter that outputs JSON strings after parsing the LogRecord."""

    def format(self, record: logging.LogRecord) -> str:
        """Formats the log record as a JSON string.

        Args:
           record (logging.LogRecord): The log record to format.

        Returns:
            str: The JSON-formatted log string.
        """
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if getattr(record, "ref_id", None):
            log_record["ref_id"] = record.ref_id

        standard_attrs = {
            "args", "asctime", "created", "exc_info", "exc_text", "filename",
            "funcName", "levelname", "levelno", "lineno", "module",
            "msecs", "message", "msg", "name", "pathname", "process",
            "processName", "relativeCreated", "stack_info", "thread", "threadName",
            "taskName", "ref_id"
        }

        for key, value in record.__dict__.items():
            if key not in standard_attrs and not key.startswith("_"):
                log_record[key] = value

        return json.dumps(log_record, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False):
    """Configures the package logger.

    Only the ``sql2frame`` logger is touched so a host application keeps
    control of the root logger.

    Args:
        level (str): The logging level (default: INFO).
        json_format (bool): Whether to use JSON formatting (default: False).
    """
    pkg_logger = logging.getLogger("sql2frame")
    pkg_logger.setLevel(level)

    for handler in pkg_logger.handlers[:]:
        pkg_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(QueryContextFilter())

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        formatter = logging.Formatter(
            "%(asctime)s - [%(ref_id)s] - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)

    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Gets a logger under the ``sql2frame`` namespace.

    Args:
        name (str): The name of the logger.

    Returns:
        logging.Logger: The logger instance.
    """
    if not name.startswith("sql2frame"):
        name = f"sql2frame.{name}"
    return logging.getLogger(name)
