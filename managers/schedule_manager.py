"""
Schedule management for the weekly tournament cycle.

Wires the recurrence engine to the week's schedule: a Sunday preview
trigger that builds the plan and posts it to admins, and a start and end
trigger per scheduled weekday that open and close the tournament, but only
for events in an approved plan.
"""

import functools
from typing import Callable, Optional

from config import (
    SCHEDULE_TIMEZONE,
    SCHEDULE_PREVIEW_WEEKDAY,
    SCHEDULE_PREVIEW_HOUR,
    SCHEDULE_PREVIEW_MINUTE,
    SCHEDULE_RECOMPUTE_ON_REARM,
)
from managers.recurrence import RecurrenceEngine
from models.schedule import ScheduleManager, ScheduledEvent
from utils.error_handling import CollaboratorFailure, log_error
from utils.formatting import weekday_name

PREVIEW_TRIGGER = "schedule_preview"
EMPTY_ROSTER_TEXT = "participants:\nnobody yet"


class TournamentScheduler:
    """Weekly scheduled tasks for the tournament bot

    Collaborators are injected so the scheduler can run against fakes:
        messenger: send_message / send_message_with_controls / edit_message /
            pin_message / unpin_message (async, raise CollaboratorFailure)
        tournaments: start_event / end_event / set_announcement_message_id /
            get_active (sync, raise CollaboratorFailure)
        controls_factory: builds the buttons attached to the schedule preview
    """

    def __init__(self, messenger, tournaments, main_channel_id: int, admin_channel_id: int,
                 schedule: Optional[ScheduleManager] = None, timezone=SCHEDULE_TIMEZONE,
                 controls_factory: Callable = None, clock: Callable = None,
                 recompute_on_rearm: bool = SCHEDULE_RECOMPUTE_ON_REARM):
        self.messenger = messenger
        self.tournaments = tournaments
        self.main_channel_id = main_channel_id
        self.admin_channel_id = admin_channel_id
        self.schedule = schedule if schedule is not None else ScheduleManager()
        self.controls_factory = controls_factory or (lambda: None)
        self.engine = RecurrenceEngine(timezone, clock=clock, recompute_on_rearm=recompute_on_rearm)
        self._registered = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register_triggers(self):
        if self._registered:
            return
        self._registered = True

        self.engine.add_trigger(
            PREVIEW_TRIGGER,
            SCHEDULE_PREVIEW_WEEKDAY, SCHEDULE_PREVIEW_HOUR, SCHEDULE_PREVIEW_MINUTE,
            self.scheduled_schedule_preview,
        )

        # One start/end pair per weekday in the template, at its window edges
        windows = {}
        for event in self.schedule.get_default_events():
            windows.setdefault(int(event.weekday), (event.start_hour, event.end_hour))

        for weekday, (start_hour, end_hour) in sorted(windows.items()):
            day = weekday_name(weekday).lower()
            self.engine.add_trigger(
                f"{day}_start", weekday, start_hour, 0,
                functools.partial(self.start_tournament_from_schedule, weekday),
            )
            self.engine.add_trigger(
                f"{day}_end", weekday, end_hour, 0,
                functools.partial(self.end_tournament_from_schedule, weekday),
            )

    def start(self):
        print("⏰ Starting tournament scheduler")
        self.register_triggers()
        self.engine.start()

    def stop(self):
        print("🛑 Stopping tournament scheduler")
        self.engine.stop()

    # ------------------------------------------------------------------
    # Schedule preview
    # ------------------------------------------------------------------

    async def send_schedule_preview(self) -> int:
        """Start a fresh week and post its schedule to the admin channel

        Returns:
            Id of the posted preview message

        Raises:
            CollaboratorFailure: the preview could not be posted
        """
        self.schedule.init_week_schedule()

        message = self.schedule.format_schedule_message()
        message_id = await self.messenger.send_message_with_controls(
            self.admin_channel_id, message, self.controls_factory()
        )

        self.schedule.set_message_id(message_id)
        print(f"📅 Schedule preview sent, message id: {message_id}")
        return message_id

    async def scheduled_schedule_preview(self):
        print("📅 Sending weekly schedule preview to admin channel")
        try:
            await self.send_schedule_preview()
        except CollaboratorFailure as e:
            log_error(e, "Sending schedule preview", {"channel_id": self.admin_channel_id})

    async def update_schedule_message(self) -> bool:
        """Re-render the posted preview; False when nothing was posted"""
        message_id = self.schedule.get_message_id()
        if message_id == 0:
            return False

        message = self.schedule.format_schedule_message()
        await self.messenger.edit_message(self.admin_channel_id, message_id, message, self.controls_factory())
        return True

    # ------------------------------------------------------------------
    # Tournament start / end
    # ------------------------------------------------------------------

    async def start_tournament_from_schedule(self, weekday: int) -> bool:
        event = self.schedule.get_event_for_weekday(weekday)
        if event is None:
            print(f"⏭️ No approved event for {weekday_name(weekday)}, skipping tournament start")
            return False
        return await self._start_tournament(event)

    async def _start_tournament(self, event: ScheduledEvent) -> bool:
        try:
            self.tournaments.start_event(event.limit, event.lichess_limit, event.chesscom_limit, event.intro)
        except CollaboratorFailure as e:
            log_error(e, "Creating tournament", {"event": event.id})
            return False

        announcement = f"{event.intro}\n\n{EMPTY_ROSTER_TEXT}"
        try:
            message_id = await self.messenger.send_message(self.main_channel_id, announcement)
        except CollaboratorFailure as e:
            log_error(e, "Sending tournament announcement", {"event": event.id})
            return False

        try:
            self.tournaments.set_announcement_message_id(message_id)
        except CollaboratorFailure as e:
            log_error(e, "Storing announcement message id", {"message_id": message_id})

        try:
            await self.messenger.pin_message(self.main_channel_id, message_id)
        except CollaboratorFailure as e:
            log_error(e, "Pinning tournament announcement", {"message_id": message_id})

        print(f"✅ Tournament started: {event.id} limit={event.limit}, "
              f"lichess<{event.lichess_limit}, chess.com<{event.chesscom_limit}")
        return True

    async def end_tournament_from_schedule(self, weekday: int) -> bool:
        event = self.schedule.get_event_for_weekday(weekday)
        if event is None:
            print(f"⏭️ No approved event for {weekday_name(weekday)}, skipping tournament end")
            return False
        return await self._end_tournament()

    async def _end_tournament(self) -> bool:
        try:
            tournament = self.tournaments.get_active()
        except CollaboratorFailure as e:
            log_error(e, "Loading active tournament")
            return False

        if tournament is None:
            print("⏭️ No tournament to end")
            return False

        if tournament.announcement_message_id:
            try:
                await self.messenger.unpin_message(self.main_channel_id, tournament.announcement_message_id)
            except CollaboratorFailure as e:
                log_error(e, "Unpinning tournament announcement",
                          {"message_id": tournament.announcement_message_id})

        try:
            self.tournaments.end_event()
        except CollaboratorFailure as e:
            log_error(e, "Removing tournament")
            return False

        print("🏁 Scheduled tournament ended")
        return True
