# groupie_tracker/utils/logger.py

import logging
import sys
import os
from datetime import datetime
from typing import Optional


class CustomFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels"""

    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    format_str = "%(asctime)s - %(levelname)s - [%(threadName)s] %(message)s"

    FORMATS = {
        logging.DEBUG: grey + format_str + reset,
        logging.INFO: grey + format_str + reset,
        logging.WARNING: yellow + format_str + reset,
        logging.ERROR: red + format_str + reset,
        logging.CRITICAL: bold_red + format_str + reset
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)


class UnicodeSafeStreamHandler(logging.StreamHandler):
    def emit(self, record):
        try:
            msg = self.format(record)
            stream = self.stream
            buffer = getattr(stream, 'buffer', None)
            if buffer is None:
                stream.write(msg + self.terminator)
            else:
                # Write with 'replace' error handler for Unicode
                buffer.write(msg.encode(encoding='utf-8', errors='replace'))
                buffer.write(self.terminator.encode('utf-8'))
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logger(name: str = "GroupieTracker", level: str = "INFO",
                 log_dir: Optional[str] = None, log_to_file: bool = True) -> logging.Logger:
    """
    Set up and return a logger instance with console and optional file handlers

    Args:
        name: The name of the logger
        level: Console log level
        log_dir: Directory for log files, defaults to <project>/logs
        log_to_file: Whether to also write a timestamped log file

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Prevent adding handlers multiple times
    if logger.handlers:
        return logger

    if log_to_file:
        logs_dir = log_dir or os.path.join(
            os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'logs')
        os.makedirs(logs_dir, exist_ok=True)

        # File handler - use UTF-8 encoding
        log_file = os.path.join(logs_dir, f'groupie_tracker_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    # Console handler with custom formatter
    console_handler = UnicodeSafeStreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(CustomFormatter())
    logger.addHandler(console_handler)

    return logger
