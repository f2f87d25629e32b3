"""
Process-wide logging configuration.

Routes logs by severity:
- DEBUG, INFO, WARNING -> STDOUT
- ERROR, CRITICAL -> STDERR

The gateway's debug switch only lowers the level of this project's own
loggers; third-party libraries stay at INFO.
"""

import logging
import sys

_PROJECT_LOGGERS = ("api", "clients", "core", "ipn")

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class MaxLevelFilter(logging.Filter):
    """Allows only records up to a specified level (inclusive)."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def setup_logging(debug: bool = False) -> None:
    """
    Configure the root logger with stdout/stderr handlers.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        debug: Emit DEBUG records from project loggers (invoice payloads,
            raw IPN bodies). Off in production.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers.clear()

    formatter = logging.Formatter(_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    level = logging.DEBUG if debug else logging.INFO
    for name in _PROJECT_LOGGERS:
        logging.getLogger(name).setLevel(level)
