"""Logging configuration built on loguru."""
import logging
import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{extra[module]}</cyan> {message}"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (apscheduler, discord) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(module=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(level: str = "INFO", third_party_level: str = "WARNING") -> None:
    """Replace loguru's default sink and capture stdlib logging.

    Call once, early, from the process entry point.
    """
    logger.remove()
    logger.configure(extra={"module": "-"})
    logger.add(sys.stderr, level=level, format=_FORMAT, backtrace=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("apscheduler", "discord"):
        logging.getLogger(name).setLevel(third_party_level)
