import logging
import os
import sys
from logging import Handler
from typing import Optional, TextIO

from tqdm import tqdm

LOGGER_NAME = "catalog_sync"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


class TqdmLoggingHandler(Handler):
    """Writes records through ``tqdm.write`` so they land above the chunk progress bar."""

    def __init__(self, level=logging.NOTSET, stream: Optional[TextIO] = None):
        super().__init__(level)
        self.stream = stream

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def setup_logger(
        log_level_str: str,
        log_file_path: Optional[str],
        log_to_console: bool
) -> logging.Logger:
    """
    Configure the ``catalog_sync`` package logger.

    Modules log through ``logging.getLogger(__name__)``, so handlers attached
    here see every record of the package. Calling this again replaces the
    handlers instead of stacking them.

    Args:
        log_level_str: Level name such as 'INFO' or 'DEBUG'. Unknown names mean INFO.
        log_file_path: Log file to append to, or None to skip file logging.
        log_to_console: Attach the tqdm-aware console handler.

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level_str.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = TqdmLoggingHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
