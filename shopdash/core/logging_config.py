import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from shopdash.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Configures the ``shopdash`` logger with a console handler and, when a log
    file is configured, a size-rotated file handler. Safe to call repeatedly.
    """
    logger = logging.getLogger("shopdash")
    logger.setLevel(level or settings.log_level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    target = log_file or settings.log_file
    if target:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
