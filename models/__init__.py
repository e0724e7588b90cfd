"""Models package - Core data structures and managers"""

from .locks import ReadWriteLock
from .schedule import (
    Weekday,
    ScheduledEvent,
    WeekSchedule,
    ScheduleManager,
    EDITABLE_FIELDS,
    NUMERIC_FIELDS,
    ScheduleError,
    ScheduleNotInitialized,
    EventNotFound,
    UnknownField,
    InvalidValue,
    NoActiveEdit,
)

__all__ = [
    'ReadWriteLock',
    'Weekday',
    'ScheduledEvent',
    'WeekSchedule',
    'ScheduleManager',
    'EDITABLE_FIELDS',
    'NUMERIC_FIELDS',
    'ScheduleError',
    'ScheduleNotInitialized',
    'EventNotFound',
    'UnknownField',
    'InvalidValue',
    'NoActiveEdit',
]
