import sys
from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}"


def configure_logging(level: str = "INFO"):
    """
    Replaces loguru's default sink with a single stderr sink at the given level.
    Safe to call more than once.
    """
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())
    logger.debug(f"Logging configured at level {level.upper()}")
