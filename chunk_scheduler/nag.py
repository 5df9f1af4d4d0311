# chunk_scheduler/nag.py
"""
Reminder timing for the active chunk.

`compute_nag_schedule` only works out *when* reminders are due. Arming real
timers is the job of a `ReminderSession`, which owns at most one chunk's
timers at a time.
"""
import logging
import math
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .metrics import NAG_EVENTS
from .models import CHUNK_TASK, Chunk, Schedule
from .progress import next_pending_chunk
from .timeutils import as_timestamp, at_time_of_day

logger = logging.getLogger(__name__)

Moment = Union[datetime, pd.Timestamp, str]
Chooser = Callable[[Sequence[Tuple[str, str]]], Tuple[str, str]]

KIND_START = "start"
KIND_IN_PROGRESS = "in_progress"
KIND_NAG = "nag"
KIND_END = "end"

# (upper bound of progress, pool of (title, body) templates)
MESSAGE_TIERS = [
    (0.25, [
        ("Just getting started?", "{task}: plenty left to do, dig in."),
        ("Still with us?", "{task} is waiting on you."),
        ("Gentle nudge", "{task} won't do itself."),
        ("Eyes on the task", "{task} needs your attention right now."),
        ("Warm-up's over", "{task}: time to find your rhythm."),
    ]),
    (0.50, [
        ("Quarter of the way!", "{task}: good start, keep it rolling."),
        ("Making progress", "{task}: you're on a roll, don't stop."),
        ("Past the slow part", "{task}: it gets easier from here."),
        ("Momentum check", "{task}: strong start, finish stronger."),
        ("Nice pace", "{task}: keep this up."),
    ]),
    (0.75, [
        ("Halfway there", "{task}: more done than not, keep going."),
        ("Over the hump", "{task}: downhill from here."),
        ("Stay with it", "{task}: stopping now would waste the progress."),
        ("Look at you go", "{task}: past the halfway mark."),
        ("Keep the streak", "{task}: the back half is shorter."),
    ]),
    (math.inf, [
        ("Almost there", "{task}: the finish line is in sight."),
        ("So close", "{task}: just a little more."),
        ("Final push", "{task}: wrap it up."),
        ("Nearly done", "{task}: finish strong."),
        ("Last lap", "{task}: bring it home."),
    ]),
]


@dataclass(frozen=True)
class NagEvent:
    at: pd.Timestamp
    kind: str
    chunk_id: str
    title: str
    body: str
    progress: Optional[float] = None   # nag events only


@dataclass
class NagPlan:
    chunk_id: str
    start_event: Optional[NagEvent] = None
    in_progress_event: Optional[NagEvent] = None   # due immediately
    nag_events: List[NagEvent] = field(default_factory=list)
    end_event: Optional[NagEvent] = None
    next_event: Optional[NagEvent] = None

    @property
    def events(self) -> List[NagEvent]:
        """Future events in firing order."""
        out = [e for e in (self.start_event, self.end_event) if e is not None]
        out.extend(self.nag_events)
        return sorted(out, key=lambda e: e.at)


def nag_message(task_title: str, progress: float,
                choose: Chooser = random.choice) -> Tuple[str, str]:
    for bound, pool in MESSAGE_TIERS:
        if progress < bound:
            title, body = choose(pool)
            return title, body.format(task=task_title)
    raise ValueError(f"progress out of range: {progress}")


def compute_nag_schedule(chunk: Chunk, now: Moment,
                         choose: Chooser = random.choice) -> NagPlan:
    """
    Every reminder still due for `chunk` as seen from `now`.

    Nag boundaries sit at whole multiples of the nag interval from the
    chunk's start, so a plan computed late lands on the same instants.
    """
    now = as_timestamp(now)
    start = at_time_of_day(now, chunk.start_time)
    end = at_time_of_day(now, chunk.end_time)
    plan = NagPlan(chunk_id=chunk.id)
    if now > end:
        return plan

    if now < start:
        plan.start_event = NagEvent(start, KIND_START, chunk.id,
                                    "Action time!", f"Time to work on: {chunk.title}")
    else:
        plan.in_progress_event = NagEvent(now, KIND_IN_PROGRESS, chunk.id,
                                          "Task in progress", f"Currently working on: {chunk.title}")

    if chunk.nag_interval_minutes > 0 and chunk.type == CHUNK_TASK:
        step = pd.Timedelta(minutes=chunk.nag_interval_minutes)
        total = end - start
        k = 1
        if now > start:
            k = math.floor((now - start) / step) + 1
        boundary = start + k * step
        while boundary < end:
            if boundary > now:
                progress = (boundary - start) / total
                title, body = nag_message(chunk.title, progress, choose)
                plan.nag_events.append(
                    NagEvent(boundary, KIND_NAG, chunk.id, title, body, progress))
            boundary += step

    if end > now:
        plan.end_event = NagEvent(end, KIND_END, chunk.id, "Time's up!",
                                  f"Finished with {chunk.title}? Mark it complete!")

    upcoming = [e for e in plan.events if e.at > now]
    plan.next_event = upcoming[0] if upcoming else None
    return plan


def thread_timer(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(max(0.0, delay_seconds), callback)
    timer.daemon = True
    timer.start()
    return timer


class ReminderSession:
    """
    Owns the live reminder timers for a single chunk.

    Starting a session for one chunk cancels whatever was armed before, and
    stopping is always safe to repeat. `timer_factory(delay_seconds, callback)`
    must return an object with a `cancel()` method.
    """

    def __init__(self, timer_factory: Optional[Callable[[float, Callable[[], None]], Any]] = None,
                 choose: Chooser = random.choice):
        self._timer_factory = timer_factory or thread_timer
        self._choose = choose
        self._timers: List[Any] = []
        self._key: Optional[tuple] = None
        self.plan: Optional[NagPlan] = None

    @property
    def active_chunk_id(self) -> Optional[str]:
        return self.plan.chunk_id if self.plan else None

    @property
    def armed(self) -> int:
        return len(self._timers)

    def start(self, chunk: Chunk, now: Moment,
              on_event: Callable[[NagEvent], None],
              on_chunk_end: Optional[Callable[[str], None]] = None) -> NagPlan:
        self.stop()
        now = as_timestamp(now)
        plan = compute_nag_schedule(chunk, now, self._choose)

        if plan.in_progress_event is not None:
            on_event(plan.in_progress_event)
        for event in plan.events:
            delay = (event.at - now).total_seconds()
            callback = partial(self._fire, event, on_event, on_chunk_end)
            self._timers.append(self._timer_factory(delay, callback))
            NAG_EVENTS.labels(kind=event.kind).inc()

        self.plan = plan
        self._key = (chunk.id, chunk.start_time, chunk.end_time, chunk.nag_interval_minutes)
        logger.debug("armed %d reminders for chunk %s", len(self._timers), chunk.id)
        return plan

    def stop(self) -> None:
        for timer in self._timers:
            timer.cancel()
        if self._timers:
            logger.debug("cancelled %d reminders for chunk %s", len(self._timers), self.active_chunk_id)
        self._timers = []
        self._key = None
        self.plan = None

    def sync(self, schedule: Schedule, now: Moment,
             on_event: Callable[[NagEvent], None],
             on_chunk_end: Optional[Callable[[str], None]] = None) -> Optional[NagPlan]:
        """Keep reminders on the schedule's current-or-next unfinished chunk."""
        chunk = next_pending_chunk(schedule, now) if schedule.is_active else None
        if chunk is None:
            self.stop()
            return None
        key = (chunk.id, chunk.start_time, chunk.end_time, chunk.nag_interval_minutes)
        if key == self._key:
            return self.plan
        return self.start(chunk, now, on_event, on_chunk_end)

    @staticmethod
    def _fire(event: NagEvent,
              on_event: Callable[[NagEvent], None],
              on_chunk_end: Optional[Callable[[str], None]]) -> None:
        on_event(event)
        if event.kind == KIND_END and on_chunk_end is not None:
            on_chunk_end(event.chunk_id)
