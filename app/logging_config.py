"""Logging setup for the application."""
import logging
import sys
from typing import Optional

from app.config import settings


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Optional log level override (defaults to settings.log_level)

    Returns:
        The "app" logger
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s (%(filename)s:%(lineno)d) - %(message)s"
        )
    )
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    return logging.getLogger("app")
