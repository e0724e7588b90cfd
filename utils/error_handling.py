"""
Error handling and logging module.

Provides centralized error logging with file persistence and the exception
raised by the Discord and tournament collaborators.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from config import LOGS_DIR

# ============================================================================
# ERROR LOGGING SYSTEM
# ============================================================================

# Setup error logger with rotation (5MB per file, keep 5 backup files)
error_logger = logging.getLogger('schedule_bot_errors')
error_logger.setLevel(logging.ERROR)

# Rotating file handler - creates new file when size exceeds 5MB
error_log_file = os.path.join(LOGS_DIR, "errors.log")
if not error_logger.handlers:
    error_handler = RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB per file
        backupCount=5,          # Keep 5 backup files
        encoding='utf-8',
        delay=True
    )
    error_handler.setLevel(logging.ERROR)

    # Format: timestamp | level | location | message
    error_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    error_handler.setFormatter(error_formatter)
    error_logger.addHandler(error_handler)


class CollaboratorFailure(Exception):
    """A messaging or tournament call failed.

    Trigger handlers catch it, log it and carry on; the trigger re-arms
    for next week regardless.
    """

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}" if message else f"{operation} failed")


def log_error(error: Exception, context: str = None, extra_info: dict = None):
    """Log error to local file for debugging

    Args:
        error: The exception that occurred
        context: Description of what was happening when error occurred
        extra_info: Additional key-value pairs to log

    Example:
        try:
            something()
        except CollaboratorFailure as e:
            log_error(e, "Pinning announcement", {"message_id": message_id})
    """
    try:
        error_msg = f"{type(error).__name__}: {str(error)}"
        if context:
            error_msg = f"[{context}] {error_msg}"
        if extra_info:
            info_str = " | ".join(f"{k}={v}" for k, v in extra_info.items())
            error_msg = f"{error_msg} | {info_str}"

        error_logger.error(error_msg, exc_info=error)
        print(f"❌ {error_msg}")
    except Exception as log_e:
        print(f"⚠️ Failed to log error: {log_e}")
