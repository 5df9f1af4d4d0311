# chunk_scheduler/scheduler.py
import logging
from typing import Callable, List, Optional, Sequence

import pandas as pd

from .allocator import allocate, new_id
from .errors import ScheduleValidationError
from .metrics import SCHEDULE_TIME
from .models import CHUNK_TASK, Break, Schedule, SchedulerPrefs, Task
from .timeutils import time_to_minutes

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["id", "type", "task_id", "label", "priority", "start", "end",
                 "duration_minutes", "nag_interval_minutes", "completed"]


def validate_breaks(start_time: str, end_time: str, breaks: Sequence[Break]) -> None:
    """Reject breaks that fall outside the working window."""
    start, end = time_to_minutes(start_time), time_to_minutes(end_time)
    for item in breaks:
        at = time_to_minutes(item.time)
        if not start <= at < end:
            raise ScheduleValidationError(
                f"break at {item.time} is outside {start_time}-{end_time}")
        if item.duration_minutes <= 0:
            raise ScheduleValidationError(
                f"break at {item.time} must last at least one minute")


def generate_schedule(tasks: Sequence[Task],
                      start_time: str,
                      end_time: str,
                      breaks: Sequence[Break] = (),
                      prefs: Optional[SchedulerPrefs] = None,
                      date: Optional[str] = None,
                      name: Optional[str] = None,
                      make_id: Optional[Callable[[], str]] = None) -> Schedule:
    """
    Build an active schedule for one day.

    The chunk sequence comes from `allocate`; this wraps it with the record
    a caller persists (id, date, window, breaks, defaults).
    """
    prefs = prefs or SchedulerPrefs()
    now = pd.Timestamp.now()

    with SCHEDULE_TIME.time():
        chunks = allocate(
            tasks,
            start_time,
            end_time,
            breaks=breaks,
            default_chunk_minutes=prefs.default_chunk_minutes,
            default_nag_minutes=prefs.default_nag_minutes,
            make_id=make_id,
        )

    logger.info("generated schedule %s-%s with %d chunks", start_time, end_time, len(chunks))
    return Schedule(
        id=(make_id or new_id)(),
        name=name,
        date=date or now.date().isoformat(),
        start_time=start_time,
        end_time=end_time,
        chunks=chunks,
        breaks=list(breaks),
        default_chunk_minutes=prefs.default_chunk_minutes,
        created_at=now.isoformat(),
    )


def schedule_to_frame(schedule: Schedule) -> pd.DataFrame:
    """One row per chunk with wall-clock start/end on the schedule's date."""
    if not schedule.chunks:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    day = pd.Timestamp(schedule.date)
    rows = []
    for c in schedule.chunks:
        rows.append({
            "id": c.id,
            "type": c.type,
            "task_id": c.task_id,
            "label": c.title,
            "priority": c.priority,
            "start": day + pd.Timedelta(minutes=c.start_minutes),
            "end": day + pd.Timedelta(minutes=c.end_minutes),
            "duration_minutes": c.duration_minutes,
            "nag_interval_minutes": c.nag_interval_minutes,
            "completed": c.completed,
        })
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def task_allocation_summary(schedule: Schedule, tasks: Sequence[Task]) -> pd.DataFrame:
    """
    Scheduled minutes per task next to what the task still needs.

    Columns: task_id, title, priority, scheduled_minutes, remaining_minutes.
    """
    frame = schedule_to_frame(schedule)
    frame = frame[frame["type"] == CHUNK_TASK]
    scheduled = frame.groupby("task_id")["duration_minutes"].sum()

    rows: List[dict] = []
    for t in tasks:
        rows.append({
            "task_id": t.id,
            "title": t.title,
            "priority": t.priority,
            "scheduled_minutes": int(scheduled.get(t.id, 0)),
            "remaining_minutes": t.remaining_minutes,
        })
    return pd.DataFrame(rows, columns=["task_id", "title", "priority",
                                       "scheduled_minutes", "remaining_minutes"])
