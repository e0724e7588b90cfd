"""Utils package - Utility functions and helpers"""

from .error_handling import log_error, CollaboratorFailure
from .formatting import (
    WEEKDAY_NAMES,
    truncate_text,
    format_hour_window,
    weekday_name,
)

__all__ = [
    'log_error',
    'CollaboratorFailure',
    'WEEKDAY_NAMES',
    'truncate_text',
    'format_hour_window',
    'weekday_name',
]
