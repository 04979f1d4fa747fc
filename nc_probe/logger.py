# Setup of nc_probe logging
#
# Usage in a module:
# log = logging.getLogger(__name__)
#
# Messages bound to a particular file:
# from nc_probe.logger import get_logger
# logger = get_logger(path, __name__)
# logger.info("Info message")
#
# The file adapter tags every record with the file path so the messages of
# independent requests stay distinguishable in one common log.

import logging
import sys
from typing import *

ROOT_LOGGER = "nc_probe"
LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(file_path)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class FilePathFilter(logging.Filter):
    """Provide the 'file_path' field for records not emitted through a file adapter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "file_path"):
            record.file_path = "-"
        return True


class FileLoggerAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("file_path", self.extra["file_path"])
        return msg, kwargs


def get_logger(file_path, name: str = None) -> logging.LoggerAdapter:
    """
    Return a logger adapter that adds the file path to the messages.

    Parameters
    ----------
    file_path : str | Path
        The file the messages are about.
    name : str, optional
        Logger name, the package logger by default.
    """
    logger = logging.getLogger(name or ROOT_LOGGER)
    return FileLoggerAdapter(logger, {"file_path": str(file_path)})


def setup_logging(level: Union[str, int] = "WARNING", stream: IO = None) -> logging.Handler:
    """
    Install a single stream handler on the package logger.
    Repeated calls replace the previously installed handler.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    for h in list(logger.handlers):
        if getattr(h, "_nc_probe_handler", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(FilePathFilter())
    handler._nc_probe_handler = True
    logger.addHandler(handler)
    return handler
