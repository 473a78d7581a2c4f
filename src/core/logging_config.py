"""Logging setup for the API process."""

import logging

from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once for the whole process.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG".
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQL echo is far too noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
