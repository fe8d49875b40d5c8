# wallet_backend/utils/logger.py

import logging
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Returns a module logger. Handlers are configured once by setup_logging()."""
    return logging.getLogger(name)


def setup_logging(level: Optional[Union[int, str]] = logging.INFO, log_file: Optional[str] = None) -> None:
    """Configures the root logger with the console format used across the backend."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )
    # solana-py's httpx transport is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
