"""
Weekly schedule model - the plan admins review before tournaments go live.

One ScheduleManager owns the current WeekSchedule. Scheduled tasks read it
to decide whether a tournament starts; admin buttons and text replies edit
it. Every public method takes the manager's lock for its whole duration and
returns copies, so nothing outside the manager mutates the stored plan.
"""

import copy
import re
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Optional, Tuple

from config import SCHEDULE_TEMPLATE, SCHEDULE_INTRO_PREVIEW_LENGTH
from models.locks import ReadWriteLock
from utils.formatting import truncate_text, format_hour_window, weekday_name


class Weekday(IntEnum):
    """Weekday numbering used by datetime.weekday()"""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


NUMERIC_FIELDS = ("limit", "lichess_limit", "chesscom_limit")
EDITABLE_FIELDS = NUMERIC_FIELDS + ("intro",)

_INTEGER_RE = re.compile(r"-?[0-9]+")


# ============================================================================
# ERRORS
# ============================================================================

class ScheduleError(Exception):
    """Base class for schedule edit failures reported back to the admin"""


class ScheduleNotInitialized(ScheduleError):
    def __init__(self):
        super().__init__("schedule is not initialized")


class EventNotFound(ScheduleError):
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"event not found: {event_id}")


class UnknownField(ScheduleError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"unknown field: {field_name}")


class InvalidValue(ScheduleError):
    def __init__(self, field_name: str, value, reason: str):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"invalid value for {field_name}: {value!r} ({reason})")


class NoActiveEdit(ScheduleError):
    def __init__(self):
        super().__init__("no field is being edited")


# ============================================================================
# DATA MODELS
# ============================================================================

@dataclass
class ScheduledEvent:
    """One recurring tournament for a weekday"""
    id: str
    weekday: Weekday
    start_hour: int
    end_hour: int
    limit: int
    lichess_limit: int = 0  # 0 = no rating ceiling
    chesscom_limit: int = 0  # 0 = no rating ceiling
    intro: str = ""
    deleted: bool = False

    @property
    def day(self) -> str:
        return weekday_name(self.weekday)

    @classmethod
    def from_template(cls, data: dict):
        return cls(
            id=data['id'],
            weekday=Weekday(data['weekday']),
            start_hour=data['start_hour'],
            end_hour=data['end_hour'],
            limit=data['limit'],
            lichess_limit=data.get('lichess_limit', 0),
            chesscom_limit=data.get('chesscom_limit', 0),
            intro=data.get('intro', ''),
        )


@dataclass
class WeekSchedule:
    """This week's plan"""
    events: List[ScheduledEvent] = field(default_factory=list)
    approved: bool = False
    message_id: int = 0  # 0 = preview not posted
    editing_event_id: str = ""
    editing_field: str = ""

    def find_event(self, event_id: str) -> Optional[ScheduledEvent]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None


def _checked_value(field_name: str, value):
    if field_name in NUMERIC_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidValue(field_name, value, "must be a whole number")
        if value < 0:
            raise InvalidValue(field_name, value, "must not be negative")
        return value
    if field_name == "intro":
        if not isinstance(value, str) or not value.strip():
            raise InvalidValue(field_name, value, "must not be empty")
        return value.strip()
    raise UnknownField(field_name)


def _parse_input(field_name: str, text: str):
    text = text.strip()
    if field_name in NUMERIC_FIELDS:
        if not _INTEGER_RE.fullmatch(text):
            raise InvalidValue(field_name, text, "must be a whole number")
        return int(text)
    return text


# ============================================================================
# SCHEDULE MANAGER
# ============================================================================

class ScheduleManager:
    """Owner of the current week's schedule"""

    def __init__(self, template: List[dict] = None, intro_preview_length: int = SCHEDULE_INTRO_PREVIEW_LENGTH):
        self._lock = ReadWriteLock()
        self._current: Optional[WeekSchedule] = None
        self._template = list(template if template is not None else SCHEDULE_TEMPLATE)
        self.intro_preview_length = intro_preview_length

    def get_default_events(self) -> List[ScheduledEvent]:
        return [ScheduledEvent.from_template(data) for data in self._template]

    def init_week_schedule(self):
        """Replace the schedule with a fresh unapproved copy of the template"""
        fresh = WeekSchedule(events=self.get_default_events())
        with self._lock.write():
            self._current = fresh

    def get_current_schedule(self) -> Optional[WeekSchedule]:
        with self._lock.read():
            return copy.deepcopy(self._current)

    def is_approved(self) -> bool:
        with self._lock.read():
            return self._current is not None and self._current.approved

    def set_approved(self, approved: bool):
        with self._lock.write():
            if self._current is not None:
                self._current.approved = approved

    def set_message_id(self, message_id: int):
        with self._lock.write():
            if self._current is not None:
                self._current.message_id = message_id

    def get_message_id(self) -> int:
        with self._lock.read():
            if self._current is None:
                return 0
            return self._current.message_id

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    def delete_event(self, event_id: str) -> bool:
        return self._set_deleted(event_id, True)

    def restore_event(self, event_id: str) -> bool:
        return self._set_deleted(event_id, False)

    def _set_deleted(self, event_id: str, deleted: bool) -> bool:
        with self._lock.write():
            if self._current is None:
                return False
            event = self._current.find_event(event_id)
            if event is None:
                return False
            event.deleted = deleted
            return True

    def get_event(self, event_id: str) -> Optional[ScheduledEvent]:
        with self._lock.read():
            if self._current is None:
                return None
            event = self._current.find_event(event_id)
            return replace(event) if event is not None else None

    # ------------------------------------------------------------------
    # Edit cursor
    # ------------------------------------------------------------------

    def set_editing_event(self, event_id: str, field_name: str):
        """Point the edit cursor at an event field

        The cursor is shared by every admin: a second selection replaces the
        first one's target.

        Raises:
            ScheduleNotInitialized, EventNotFound, UnknownField
        """
        with self._lock.write():
            if self._current is None:
                raise ScheduleNotInitialized()
            if self._current.find_event(event_id) is None:
                raise EventNotFound(event_id)
            if field_name not in EDITABLE_FIELDS:
                raise UnknownField(field_name)
            self._current.editing_event_id = event_id
            self._current.editing_field = field_name

    def get_editing_state(self) -> Tuple[str, str]:
        with self._lock.read():
            if self._current is None:
                return "", ""
            return self._current.editing_event_id, self._current.editing_field

    def clear_editing_state(self):
        with self._lock.write():
            if self._current is not None:
                self._current.editing_event_id = ""
                self._current.editing_field = ""

    def update_event_field(self, event_id: str, field_name: str, value):
        """Set one editable field of an event

        Numeric fields take a non-negative int, intro takes non-empty text.
        On failure the event is left unchanged.

        Raises:
            ScheduleNotInitialized, EventNotFound, UnknownField, InvalidValue
        """
        with self._lock.write():
            if self._current is None:
                raise ScheduleNotInitialized()
            event = self._current.find_event(event_id)
            if event is None:
                raise EventNotFound(event_id)
            setattr(event, field_name, _checked_value(field_name, value))

    def apply_edit_input(self, text: str) -> ScheduledEvent:
        """Apply an admin's free-text reply to the field under the edit cursor

        The cursor is cleared only on success, so a rejected value can be
        retyped straight away.

        Returns:
            Copy of the updated event

        Raises:
            ScheduleNotInitialized, NoActiveEdit, EventNotFound, InvalidValue
        """
        with self._lock.write():
            if self._current is None:
                raise ScheduleNotInitialized()
            event_id = self._current.editing_event_id
            field_name = self._current.editing_field
            if not event_id or not field_name:
                raise NoActiveEdit()
            event = self._current.find_event(event_id)
            if event is None:
                raise EventNotFound(event_id)
            value = _checked_value(field_name, _parse_input(field_name, text))
            setattr(event, field_name, value)
            self._current.editing_event_id = ""
            self._current.editing_field = ""
            return replace(event)

    # ------------------------------------------------------------------
    # Reads for scheduled tasks and rendering
    # ------------------------------------------------------------------

    def get_active_events(self) -> List[ScheduledEvent]:
        with self._lock.read():
            if self._current is None:
                return []
            return [replace(e) for e in self._current.events if not e.deleted]

    def get_event_for_weekday(self, weekday: int) -> Optional[ScheduledEvent]:
        """First non-deleted event for the weekday, only once approved"""
        with self._lock.read():
            if self._current is None or not self._current.approved:
                return None
            for event in self._current.events:
                if event.weekday == weekday and not event.deleted:
                    return replace(event)
            return None

    def format_schedule_message(self) -> str:
        with self._lock.read():
            if self._current is None:
                return "schedule is not initialized"

            lines = ["📅 **tournament schedule for the week**", ""]
            for e in self._current.events:
                status_icon = "❌" if e.deleted else "✅"
                lines.append(f"{status_icon} **{e.day}** {format_hour_window(e.start_hour, e.end_hour)}")
                limits = f"   limit: {e.limit}"
                if e.lichess_limit > 0 or e.chesscom_limit > 0:
                    limits += f" | lichess<{e.lichess_limit}, chess.com<{e.chesscom_limit}"
                lines.append(limits)
                lines.append(f"   text: _{truncate_text(e.intro, self.intro_preview_length)}_")
                lines.append("")

            if self._current.approved:
                lines.append("✅ **schedule approved**")
            else:
                lines.append("⚠️ **awaiting approval**")
                lines.append('tournaments will not start until someone presses "all good"')

            return "\n".join(lines)
