"""
Logging configuration for the end-fed length visualizer.

Console logging only; nothing is written to disk.

Usage:
    from logging_config import setup_logging, set_debug_mode

    setup_logging()        # once, at startup (CLI or app)
    set_debug_mode(True)   # verbose output with function/line

    # In any module:
    import logging
    logger = logging.getLogger(__name__)
"""

import logging
import sys
from typing import Optional, TextIO

_debug_mode = False
_console_handler: Optional[logging.Handler] = None

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-16s | %(message)s'
LOG_FORMAT_DEBUG = '%(asctime)s | %(levelname)-8s | %(name)-16s | %(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

NOISY_LOGGERS = ('matplotlib', 'PIL', 'urllib3', 'kaleido', 'watchdog', 'streamlit')


def setup_logging(console: bool = True, debug: bool = False, stream: Optional[TextIO] = None) -> None:
    """
    Initialize the logging system.

    Args:
        console: If True, log to the console (stderr unless `stream` is given)
        debug: Start in debug mode
        stream: Alternative stream for the console handler
    """
    global _console_handler

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all; handlers filter

    # Re-init replaces only our own handler
    if _console_handler is not None and _console_handler in root_logger.handlers:
        root_logger.removeHandler(_console_handler)
    _console_handler = None

    if console:
        _console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        _console_handler.setLevel(logging.INFO)
        _console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(_console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    set_debug_mode(debug)


def set_debug_mode(enabled: bool) -> None:
    """
    Enable or disable debug logging level.

    Args:
        enabled: True for DEBUG with function/line detail, False for INFO
    """
    global _debug_mode

    _debug_mode = bool(enabled)
    level = logging.DEBUG if enabled else logging.INFO
    fmt = LOG_FORMAT_DEBUG if enabled else LOG_FORMAT

    if _console_handler:
        _console_handler.setLevel(level)
        _console_handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))

    if enabled:
        logging.getLogger('logging_config').debug("Debug logging ENABLED - verbose output active")


def is_debug_mode() -> bool:
    return _debug_mode
