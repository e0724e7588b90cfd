"""Managers package - Scheduled tasks and their collaborators"""

from .recurrence import (
    RecurrenceEngine,
    WeeklyTrigger,
    TriggerState,
    next_occurrence,
    WEEK,
)
from .schedule_manager import TournamentScheduler, PREVIEW_TRIGGER

__all__ = [
    'RecurrenceEngine',
    'WeeklyTrigger',
    'TriggerState',
    'next_occurrence',
    'WEEK',
    'TournamentScheduler',
    'PREVIEW_TRIGGER',
]
