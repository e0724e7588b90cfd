"""Tests for the weekly schedule model."""

import threading

import pytest

from models.schedule import (
    ScheduleManager,
    Weekday,
    EDITABLE_FIELDS,
    ScheduleNotInitialized,
    EventNotFound,
    UnknownField,
    InvalidValue,
    NoActiveEdit,
)
from utils.formatting import truncate_text


class TestUninitialized:
    """Before the first preview every operation degrades quietly."""

    def test_reads_return_empty_values(self, schedule):
        assert schedule.get_current_schedule() is None
        assert schedule.is_approved() is False
        assert schedule.get_message_id() == 0
        assert schedule.get_event("monday") is None
        assert schedule.get_editing_state() == ("", "")
        assert schedule.get_active_events() == []
        assert schedule.get_event_for_weekday(Weekday.MONDAY) is None
        assert schedule.format_schedule_message() == "schedule is not initialized"

    def test_writes_are_ignored_or_report_false(self, schedule):
        schedule.set_approved(True)
        schedule.set_message_id(10)
        schedule.clear_editing_state()
        assert schedule.delete_event("monday") is False
        assert schedule.restore_event("monday") is False
        assert schedule.is_approved() is False

    def test_edits_raise_not_initialized(self, schedule):
        with pytest.raises(ScheduleNotInitialized):
            schedule.update_event_field("monday", "limit", 10)
        with pytest.raises(ScheduleNotInitialized):
            schedule.set_editing_event("monday", "limit")
        with pytest.raises(ScheduleNotInitialized):
            schedule.apply_edit_input("10")


class TestInitWeek:
    def test_fresh_week_matches_template(self, schedule):
        schedule.init_week_schedule()
        current = schedule.get_current_schedule()

        assert current.approved is False
        assert current.message_id == 0
        assert (current.editing_event_id, current.editing_field) == ("", "")
        assert [e.id for e in current.events] == ["monday", "tuesday", "wednesday"]
        assert not any(e.deleted for e in current.events)

        tuesday = current.find_event("tuesday")
        assert tuesday.weekday == Weekday.TUESDAY
        assert (tuesday.start_hour, tuesday.end_hour) == (12, 21)
        assert (tuesday.limit, tuesday.lichess_limit, tuesday.chesscom_limit) == (24, 1600, 1201)

    def test_reinitializing_discards_edits(self, schedule):
        schedule.init_week_schedule()
        schedule.set_approved(True)
        schedule.set_message_id(77)
        schedule.delete_event("monday")
        schedule.update_event_field("tuesday", "limit", 5)
        schedule.set_editing_event("wednesday", "intro")

        schedule.init_week_schedule()

        assert schedule.is_approved() is False
        assert schedule.get_message_id() == 0
        assert schedule.get_editing_state() == ("", "")
        assert schedule.get_event("monday").deleted is False
        assert schedule.get_event("tuesday").limit == 24

    def test_custom_template(self):
        manager = ScheduleManager(template=[{
            "id": "friday", "weekday": 4, "start_hour": 18, "end_hour": 22, "limit": 8,
        }])
        manager.init_week_schedule()
        event = manager.get_event("friday")
        assert event.day == "Friday"
        assert event.lichess_limit == 0
        assert event.intro == ""


class TestSnapshots:
    def test_returned_events_are_copies(self, approved_schedule):
        event = approved_schedule.get_event("monday")
        event.limit = 1
        event.deleted = True
        assert approved_schedule.get_event("monday").limit == 32
        assert approved_schedule.get_event_for_weekday(Weekday.MONDAY) is not None

    def test_current_schedule_is_a_copy(self, approved_schedule):
        current = approved_schedule.get_current_schedule()
        current.approved = False
        current.events[0].deleted = True
        assert approved_schedule.is_approved() is True
        assert approved_schedule.get_event("monday").deleted is False


class TestSoftDelete:
    def test_delete_then_restore_leaves_other_fields_alone(self, schedule):
        schedule.init_week_schedule()
        before = schedule.get_event("tuesday")

        assert schedule.delete_event("tuesday") is True
        assert schedule.get_event("tuesday").deleted is True
        assert schedule.restore_event("tuesday") is True

        assert schedule.get_event("tuesday") == before

    def test_delete_and_restore_are_idempotent(self, schedule):
        schedule.init_week_schedule()
        assert schedule.delete_event("monday") is True
        assert schedule.delete_event("monday") is True
        assert schedule.get_event("monday").deleted is True
        assert schedule.restore_event("monday") is True
        assert schedule.restore_event("monday") is True
        assert schedule.get_event("monday").deleted is False

    def test_unknown_id(self, schedule):
        schedule.init_week_schedule()
        assert schedule.delete_event("sunday") is False
        assert schedule.restore_event("sunday") is False

    def test_deleted_events_stay_in_the_plan(self, schedule):
        schedule.init_week_schedule()
        schedule.delete_event("wednesday")
        assert len(schedule.get_current_schedule().events) == 3
        assert [e.id for e in schedule.get_active_events()] == ["monday", "tuesday"]


class TestEventForWeekday:
    def test_unapproved_plan_never_returns_events(self, schedule):
        schedule.init_week_schedule()
        for weekday in Weekday:
            assert schedule.get_event_for_weekday(weekday) is None

    def test_approval_scenario(self, schedule):
        schedule.init_week_schedule()
        schedule.set_approved(True)

        monday = schedule.get_event_for_weekday(Weekday.MONDAY)
        assert monday.id == "monday"
        assert monday.limit == 32
        assert monday.intro.startswith("registration for the southern tournament")
        assert schedule.get_event_for_weekday(Weekday.SUNDAY) is None

        schedule.delete_event("monday")
        assert schedule.get_event_for_weekday(Weekday.MONDAY) is None

        schedule.restore_event("monday")
        assert schedule.get_event_for_weekday(Weekday.MONDAY).id == "monday"

    def test_accepts_plain_int_weekday(self, approved_schedule):
        assert approved_schedule.get_event_for_weekday(2).id == "wednesday"

    def test_first_non_deleted_match_wins(self):
        manager = ScheduleManager(template=[
            {"id": "early", "weekday": 0, "start_hour": 10, "end_hour": 12, "limit": 8},
            {"id": "late", "weekday": 0, "start_hour": 18, "end_hour": 20, "limit": 16},
        ])
        manager.init_week_schedule()
        manager.set_approved(True)
        assert manager.get_event_for_weekday(0).id == "early"
        manager.delete_event("early")
        assert manager.get_event_for_weekday(0).id == "late"


class TestUpdateField:
    def test_numeric_fields(self, schedule):
        schedule.init_week_schedule()
        schedule.update_event_field("monday", "limit", 40)
        schedule.update_event_field("monday", "lichess_limit", 0)
        schedule.update_event_field("monday", "chesscom_limit", 1500)
        event = schedule.get_event("monday")
        assert (event.limit, event.lichess_limit, event.chesscom_limit) == (40, 0, 1500)

    def test_intro_is_stripped(self, schedule):
        schedule.init_week_schedule()
        schedule.update_event_field("monday", "intro", "  blitz tonight!  ")
        assert schedule.get_event("monday").intro == "blitz tonight!"

    def test_negative_limit_is_rejected_and_value_kept(self, schedule):
        schedule.init_week_schedule()
        with pytest.raises(InvalidValue) as excinfo:
            schedule.update_event_field("monday", "limit", -3)
        assert excinfo.value.field_name == "limit"
        assert schedule.get_event("monday").limit == 32

    @pytest.mark.parametrize("value", ["40", 4.0, True, None])
    def test_numeric_fields_need_ints(self, schedule, value):
        schedule.init_week_schedule()
        with pytest.raises(InvalidValue):
            schedule.update_event_field("tuesday", "lichess_limit", value)
        assert schedule.get_event("tuesday").lichess_limit == 1600

    @pytest.mark.parametrize("value", ["", "   ", 12])
    def test_intro_needs_text(self, schedule, value):
        schedule.init_week_schedule()
        with pytest.raises(InvalidValue):
            schedule.update_event_field("monday", "intro", value)

    def test_unknown_field(self, schedule):
        schedule.init_week_schedule()
        with pytest.raises(UnknownField):
            schedule.update_event_field("monday", "start_hour", 9)
        with pytest.raises(UnknownField):
            schedule.update_event_field("monday", "deleted", True)

    def test_missing_event(self, schedule):
        schedule.init_week_schedule()
        with pytest.raises(EventNotFound) as excinfo:
            schedule.update_event_field("sunday", "limit", 10)
        assert excinfo.value.event_id == "sunday"


class TestEditCursor:
    def test_set_and_clear(self, schedule):
        schedule.init_week_schedule()
        schedule.set_editing_event("tuesday", "limit")
        assert schedule.get_editing_state() == ("tuesday", "limit")
        schedule.clear_editing_state()
        assert schedule.get_editing_state() == ("", "")

    def test_cursor_may_point_at_deleted_event(self, schedule):
        schedule.init_week_schedule()
        schedule.delete_event("monday")
        schedule.set_editing_event("monday", "intro")
        assert schedule.get_editing_state() == ("monday", "intro")

    def test_invalid_targets_are_not_stored(self, schedule):
        schedule.init_week_schedule()
        schedule.set_editing_event("monday", "limit")
        with pytest.raises(EventNotFound):
            schedule.set_editing_event("sunday", "limit")
        with pytest.raises(UnknownField):
            schedule.set_editing_event("tuesday", "end_hour")
        assert schedule.get_editing_state() == ("monday", "limit")

    def test_second_selection_replaces_first(self, schedule):
        schedule.init_week_schedule()
        schedule.set_editing_event("monday", "limit")
        schedule.set_editing_event("wednesday", "intro")
        assert schedule.get_editing_state() == ("wednesday", "intro")

    def test_all_editable_fields_accepted(self, schedule):
        schedule.init_week_schedule()
        for field_name in EDITABLE_FIELDS:
            schedule.set_editing_event("monday", field_name)
            assert schedule.get_editing_state() == ("monday", field_name)


class TestApplyEditInput:
    def test_text_reply_scenario(self, schedule):
        schedule.init_week_schedule()
        schedule.set_editing_event("tuesday", "limit")

        with pytest.raises(InvalidValue):
            schedule.apply_edit_input("-3")
        assert schedule.get_editing_state() == ("tuesday", "limit")
        assert schedule.get_event("tuesday").limit == 24

        event = schedule.apply_edit_input("40")
        assert event.limit == 40
        assert schedule.get_event("tuesday").limit == 40
        assert schedule.get_editing_state() == ("", "")

    @pytest.mark.parametrize("text", ["forty", "4.5", "1e3", "", "4 0"])
    def test_non_numbers_rejected(self, schedule, text):
        schedule.init_week_schedule()
        schedule.set_editing_event("monday", "chesscom_limit")
        with pytest.raises(InvalidValue):
            schedule.apply_edit_input(text)
        assert schedule.get_editing_state() == ("monday", "chesscom_limit")

    def test_surrounding_whitespace_ignored(self, schedule):
        schedule.init_week_schedule()
        schedule.set_editing_event("monday", "lichess_limit")
        assert schedule.apply_edit_input("  1800\n").lichess_limit == 1800

    def test_intro_text(self, schedule):
        schedule.init_week_schedule()
        schedule.set_editing_event("wednesday", "intro")
        event = schedule.apply_edit_input("рапид турнир в ладье, /checkin")
        assert event.intro == "рапид турнир в ладье, /checkin"

    def test_without_cursor(self, schedule):
        schedule.init_week_schedule()
        with pytest.raises(NoActiveEdit):
            schedule.apply_edit_input("40")


class TestFormatScheduleMessage:
    def test_unapproved_rendering(self, schedule):
        schedule.init_week_schedule()
        text = schedule.format_schedule_message()

        assert text.startswith("📅 **tournament schedule for the week**")
        assert "✅ **Monday** (12:00 - 21:00)" in text
        assert "   limit: 32\n" in text
        assert "   limit: 24 | lichess<1600, chess.com<1201" in text
        assert "⚠️ **awaiting approval**" in text
        assert "schedule approved" not in text

    def test_deleted_and_approved_rendering(self, approved_schedule):
        approved_schedule.delete_event("wednesday")
        text = approved_schedule.format_schedule_message()
        assert "❌ **Wednesday** (12:00 - 21:00)" in text
        assert text.endswith("✅ **schedule approved**")

    def test_long_intro_is_truncated(self, schedule):
        schedule.init_week_schedule()
        schedule.update_event_field("monday", "intro", "ж" * 80)
        text = schedule.format_schedule_message()
        assert f"   text: _{'ж' * 47}..._" in text

    def test_rendering_is_deterministic(self, approved_schedule):
        assert approved_schedule.format_schedule_message() == approved_schedule.format_schedule_message()


class TestTruncateText:
    def test_short_text_untouched(self):
        assert truncate_text("hello", 10) == "hello"
        assert truncate_text("x" * 10, 10) == "x" * 10

    def test_counts_characters_not_bytes(self):
        result = truncate_text("🏆турнир" * 10, 12)
        assert len(result) == 12
        assert result == ("🏆турнир" * 2)[:9] + "..."

    def test_tiny_limit(self):
        assert truncate_text("abcdef", 2) == ".."


class TestLocking:
    def test_render_waits_for_write_in_progress(self, schedule):
        schedule.init_week_schedule()
        rendered = []
        reader = threading.Thread(target=lambda: rendered.append(schedule.format_schedule_message()))

        with schedule._lock.write():
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            # Two-part write: both halves must become visible together
            schedule._current.events[0].deleted = True
            schedule._current.approved = True

        reader.join(timeout=2)
        assert not reader.is_alive()
        assert "❌ **Monday**" in rendered[0]
        assert "✅ **schedule approved**" in rendered[0]

    def test_concurrent_readers_and_writers(self, approved_schedule):
        errors = []

        def toggle():
            try:
                for _ in range(200):
                    approved_schedule.delete_event("monday")
                    approved_schedule.restore_event("monday")
            except Exception as e:  # pragma: no cover
                errors.append(e)

        def render():
            try:
                for _ in range(200):
                    text = approved_schedule.format_schedule_message()
                    assert "**Monday**" in text
                    approved_schedule.get_event_for_weekday(Weekday.MONDAY)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=toggle) for _ in range(2)]
        threads += [threading.Thread(target=render) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert approved_schedule.get_event("monday").deleted is False
