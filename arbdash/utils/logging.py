import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ROOT_NAME = "arbdash"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return an `arbdash.<name>` logger with a single stream handler.

    The level comes from `LOG_LEVEL` and is re-read on every call, so the
    dashboard can change verbosity without restarting.
    """
    level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_str, logging.INFO)

    full_name = f"{ROOT_NAME}.{name}" if name else ROOT_NAME
    logger = logging.getLogger(full_name)
    if logger.handlers:
        logger.setLevel(level)
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
