"""
Logging setup shared by the server and the batch tools.

``CLAISEN_LOG_LEVEL`` (name such as ``DEBUG``) and ``CLAISEN_LOG_FILE`` fill
in whatever the caller leaves unset.
"""
import logging
import os
import sys
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = os.environ.get("CLAISEN_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: Union[int, str, None] = None, log_file: Optional[str] = None
) -> logging.Logger:
    """Attach stdout (and optionally file) handlers to the ``claisen`` logger."""
    level = _resolve_level(level)
    log_file = log_file or os.environ.get("CLAISEN_LOG_FILE") or None

    logger = logging.getLogger("claisen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)

    logger.debug("Logging to %s", log_file or "stdout")
    return logger
