"""
Logger factories. Every logger lives under the `support_directory` namespace,
does not propagate, and stamps records with the current request context.
"""
import atexit
import logging

from support_directory.logging.config import LoggingConfig
from support_directory.logging.handlers import get_app_handler, get_audit_handler, get_local_file_handler, flush_handlers
from support_directory.logging.filters import RequestContextFilter
from support_directory.logging.slack_handler import slack_handler

ROOT_LOGGER_NAME = "support_directory"


def _configure(logger: logging.Logger, *handlers: logging.Handler) -> logging.Logger:
    logger.handlers.clear()
    logger.filters.clear()
    logger.addFilter(RequestContextFilter())
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def get_app_logger(name: str | None = None):
    if name and name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = name[len(ROOT_LOGGER_NAME) + 1:]
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME)
    if logger.handlers:
        return logger
    # one shared stream on Firehose, one file per module locally
    if LoggingConfig.FIREHOSE_ENABLED:
        handler = get_app_handler()
    else:
        handler = get_local_file_handler((name or "app").replace(".", "_"))
    return _configure(logger, handler, slack_handler)


def init_audit_logger(method: str = ""):
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.audit.{'get' if method.upper() == 'GET' else 'all'}")
    if logger.handlers:
        return logger
    return _configure(logger, get_audit_handler(method))


def initialize_logging():
    is_valid, message = LoggingConfig.is_valid_config()
    if not is_valid:
        print(f"Warning: {message}")
    atexit.register(flush_handlers)
    destination = "firehose" if LoggingConfig.FIREHOSE_ENABLED else LoggingConfig.LOG_DIR
    print(f"Logging initialized for {LoggingConfig.SERVICE_NAME} | destination={destination}")
