"""
Weekly recurrence engine.

Each trigger fires its handler once per occurrence of a (weekday, hour,
minute) in the schedule time zone, re-arms for the following week, and
keeps going until the engine is stopped. One asyncio task per trigger; a
single shared stop event ends them all.
"""

import asyncio
import datetime
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import pytz

from utils.error_handling import log_error
from utils.formatting import weekday_name

WEEK = datetime.timedelta(days=7)


class TriggerState(Enum):
    IDLE = "idle"        # registered, engine not started
    ARMED = "armed"      # waiting for the next occurrence
    FIRING = "firing"    # handler running
    STOPPED = "stopped"  # terminal


def _localize(tz, naive: datetime.datetime) -> datetime.datetime:
    # pytz zones need localize(); plain tzinfo objects can be attached directly
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def next_occurrence(now: datetime.datetime, weekday: int, hour: int, minute: int, tz) -> datetime.datetime:
    """Next instant strictly after now that falls on weekday at hour:minute in tz

    Args:
        now: Timezone-aware current time (any zone, converted to tz)
        weekday: Target weekday, Monday = 0
        hour: Target hour 0-23
        minute: Target minute 0-59
        tz: Zone the wall-clock target is expressed in

    Returns:
        Aware datetime in tz, at most 7 days after now
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")

    now = now.astimezone(tz)
    days_until = (weekday - now.weekday() + 7) % 7
    target_date = now.date() + datetime.timedelta(days=days_until)
    wall_time = datetime.time(hour, minute)

    target = _localize(tz, datetime.datetime.combine(target_date, wall_time))
    # Exactly-now counts as passed, so the delay is always positive
    if target <= now:
        target = _localize(tz, datetime.datetime.combine(target_date + WEEK, wall_time))
    return target


def format_delay(seconds: float) -> str:
    return str(datetime.timedelta(seconds=int(seconds)))


@dataclass
class WeeklyTrigger:
    """A handler bound to one weekly wall-clock moment"""
    name: str
    weekday: int
    hour: int
    minute: int
    handler: Callable
    state: TriggerState = TriggerState.IDLE
    next_run: Optional[datetime.datetime] = None
    fire_count: int = 0

    def describe(self) -> str:
        return f"{self.name} ({weekday_name(self.weekday)} {self.hour:02d}:{self.minute:02d})"


class RecurrenceEngine:
    """Runs weekly triggers until stopped

    A stopped engine cannot be restarted; build a new one instead.
    """

    def __init__(self, timezone, clock: Callable[[], datetime.datetime] = None,
                 period: datetime.timedelta = WEEK, recompute_on_rearm: bool = False):
        """
        Args:
            timezone: pytz zone or zone name for all trigger times
            clock: Returns the current aware time (default: now in timezone)
            period: Re-arm interval after an occurrence
            recompute_on_rearm: Re-run next_occurrence on every re-arm instead
                of adding period (keeps wall-clock time across DST changes)
        """
        if isinstance(timezone, str):
            timezone = pytz.timezone(timezone)
        self.timezone = timezone
        self._clock = clock or (lambda: datetime.datetime.now(self.timezone))
        self.period = period
        self.recompute_on_rearm = recompute_on_rearm

        self._triggers: Dict[str, WeeklyTrigger] = {}
        self._tasks: List[asyncio.Task] = []
        self._stop_event: Optional[asyncio.Event] = None
        self._started = False
        self._stopped = False

    @property
    def triggers(self) -> List[WeeklyTrigger]:
        return list(self._triggers.values())

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    def add_trigger(self, name: str, weekday: int, hour: int, minute: int, handler: Callable) -> WeeklyTrigger:
        """Register a trigger; only allowed before start()"""
        if self._started or self._stopped:
            raise RuntimeError("triggers must be registered before the engine starts")
        if name in self._triggers:
            raise ValueError(f"trigger already registered: {name}")
        if not 0 <= weekday <= 6 or not 0 <= hour <= 23 or not 0 <= minute <= 59:
            raise ValueError(f"invalid trigger time for {name}: weekday={weekday} {hour}:{minute}")

        trigger = WeeklyTrigger(name=name, weekday=weekday, hour=hour, minute=minute, handler=handler)
        self._triggers[name] = trigger
        return trigger

    def start(self):
        """Arm every registered trigger; must run inside the event loop"""
        if self._started:
            return
        if self._stopped:
            raise RuntimeError("engine was stopped; create a new one")

        self._started = True
        self._stop_event = asyncio.Event()
        print(f"⏰ Starting recurrence engine with {len(self._triggers)} triggers")
        for trigger in self._triggers.values():
            task = asyncio.create_task(self._run(trigger), name=f"trigger:{trigger.name}")
            self._tasks.append(task)

    def stop(self):
        """Signal every trigger to exit; waiting triggers exit without firing"""
        if self._stopped:
            return
        self._stopped = True
        print("🛑 Stopping recurrence engine")
        if self._stop_event is not None:
            self._stop_event.set()
        else:
            for trigger in self._triggers.values():
                trigger.state = TriggerState.STOPPED

    async def wait_closed(self):
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def seconds_until_next(self, trigger: WeeklyTrigger) -> float:
        now = self._clock()
        target = next_occurrence(now, trigger.weekday, trigger.hour, trigger.minute, self.timezone)
        return (target - now).total_seconds()

    async def run_trigger(self, name: str):
        """Fire one trigger's handler now, outside its weekly cycle"""
        trigger = self._triggers.get(name)
        if trigger is None:
            raise KeyError(f"unknown trigger: {name}")
        print(f"▶️ Manually running {trigger.describe()}")
        await self._invoke(trigger)

    # ------------------------------------------------------------------
    # Trigger loop
    # ------------------------------------------------------------------

    async def _run(self, trigger: WeeklyTrigger):
        scheduled = next_occurrence(self._clock(), trigger.weekday, trigger.hour, trigger.minute, self.timezone)
        while True:
            trigger.state = TriggerState.ARMED
            trigger.next_run = scheduled
            delay = max(0.0, (scheduled - self._clock()).total_seconds())
            print(f"⏳ Next {trigger.describe()} in {format_delay(delay)} (at {scheduled:%Y-%m-%d %H:%M:%S})")

            if await self._wait_or_stop(delay):
                trigger.state = TriggerState.STOPPED
                trigger.next_run = None
                return

            trigger.state = TriggerState.FIRING
            trigger.fire_count += 1
            print(f"🔔 Executing {trigger.describe()}")
            await self._invoke(trigger)

            if self.recompute_on_rearm:
                # Never earlier than the instant just fired, or it would repeat
                now = max(self._clock(), scheduled)
                scheduled = next_occurrence(now, trigger.weekday, trigger.hour, trigger.minute, self.timezone)
            else:
                scheduled = scheduled + self.period

    async def _wait_or_stop(self, delay: float) -> bool:
        """Sleep for delay seconds; True if the stop signal came first"""
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _invoke(self, trigger: WeeklyTrigger):
        try:
            result = trigger.handler()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            log_error(e, f"Scheduled task {trigger.name}", {
                "weekday": weekday_name(trigger.weekday),
                "time": f"{trigger.hour:02d}:{trigger.minute:02d}",
            })
