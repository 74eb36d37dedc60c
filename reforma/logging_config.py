"""
Centralized logging configuration using loguru.
"""
import os
import sys
import logging
from typing import Optional
from loguru import logger


DEFAULT_LOG_LEVEL = "INFO"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Third-party modules that are too chatty at DEBUG
MODULE_LOG_LEVELS = {
    "gspread": "WARNING",
    "google.auth": "WARNING",
    "urllib3": "WARNING",
    "streamlit": "WARNING",
}


class InterceptHandler(logging.Handler):
    """
    Routes standard library logging records (gspread, google-auth) through loguru.
    """
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure the loguru logger.

    Args:
        log_level: Level for all sinks. Defaults to the LOG_LEVEL env var, then INFO.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)

    logger.remove()
    logger.add(
        sys.stderr,
        format=DEFAULT_FORMAT,
        level=log_level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = os.getenv("LOG_FILE")
    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=DEFAULT_FORMAT,
            level=log_level,
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for module, level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module).setLevel(getattr(logging, level))


__all__ = ["logger", "configure_logging"]
