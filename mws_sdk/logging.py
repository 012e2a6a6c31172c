import logging
from typing import Optional

from mws_sdk.settings.service import ServiceSettings

PACKAGE_LOGGER = "mws_sdk"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(mws_user)s | %(name)s | %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger with the package's stream formatter attached once.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


class _UserFilter(logging.Filter):
    """Stamps the configured user name on every record written to the log file."""

    def __init__(self, user_name: str) -> None:
        super().__init__()
        self.user_name = user_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "mws_user"):
            record.mws_user = self.user_name
        return True


_file_handlers: dict = {}


def configure_logging(service: ServiceSettings) -> Optional[logging.Handler]:
    """
    Attach a file handler to the package logger when ``log_path`` is set.

    Handlers are cached per path so building many clients does not duplicate
    lines in the log file.

    Args:
        service: Service settings carrying ``log_path`` and ``user_name``

    Returns:
        The file handler, or None when file logging is disabled
    """
    if not service.log_path:
        return None

    handler = _file_handlers.get(service.log_path)
    if handler is None:
        handler = logging.FileHandler(service.log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handler.addFilter(_UserFilter(service.user_name))
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(handler)
        if package_logger.level == logging.NOTSET or package_logger.level > logging.INFO:
            package_logger.setLevel(logging.INFO)
        _file_handlers[service.log_path] = handler
    return handler
