"""
Logging setup for programs that drive a multiplexer.

Library modules only create loggers under the "i2cmux" namespace; handlers
are installed by the program (scanner, sensor services) through
setup_logging().
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "i2cmux"


def setup_logging(role: str, level: str = "INFO", log_file: Optional[str] = None):
    """
    Install console (and optional file) handlers on the root logger.

    Args:
        role: Program name shown in every line (e.g., "scanner")
        level: Logging level name; unknown names fall back to INFO
        log_file: Optional file path; a file that cannot be opened is
            reported and skipped
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(
        f'%(asctime)s - [{role}] %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = [logging.StreamHandler(sys.stdout)]
    file_error = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            file_error = e

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if file_error is not None:
        logging.error(f"Failed to create log file {log_file}: {file_error}")
    logging.getLogger(PACKAGE_LOGGER).debug(f"Logging configured: role={role}, level={level}")


def enable_debug():
    """Lower the package logger to DEBUG (per-transaction tracing)."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)
