# chunk_scheduler/progress.py
import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from .errors import ChunkNotFoundError
from .metrics import CHUNKS_COMPLETED
from .models import CHUNK_TASK, STATUS_ACTIVE, STATUS_COMPLETED, Chunk, Schedule, Task
from .timeutils import as_timestamp, at_time_of_day, minute_of_day

logger = logging.getLogger(__name__)

Moment = Union[datetime, pd.Timestamp, str]


def credited_minutes(chunk: Chunk, now: Moment) -> int:
    """
    Minutes actually spent on a chunk: wall time since its scheduled start,
    rounded, at least one. Overtime past the chunk's end is credited in full.
    """
    now = as_timestamp(now)
    elapsed = (now - at_time_of_day(now, chunk.start_time)).total_seconds() / 60
    return max(1, math.floor(elapsed + 0.5))


def complete_chunk(schedule: Schedule,
                   tasks: Sequence[Task],
                   chunk_id: str,
                   now: Moment) -> Tuple[Schedule, List[Task]]:
    """
    Mark a chunk done and credit its task with the time spent.

    Returns the updated schedule and task list. Completing a chunk twice
    changes nothing the second time.
    """
    chunks = list(schedule.chunks)
    idx = next((i for i, c in enumerate(chunks) if c.id == chunk_id), None)
    if idx is None:
        raise ChunkNotFoundError(chunk_id)

    chunk = chunks[idx]
    tasks = list(tasks)
    if chunk.completed:
        return schedule, tasks

    now = as_timestamp(now)
    chunks[idx] = replace(chunk, completed=True, completed_at=now.isoformat())

    if chunk.type == CHUNK_TASK:
        t_idx = next((i for i, t in enumerate(tasks) if t.id == chunk.task_id), None)
        if t_idx is None:
            logger.warning("chunk %s completed but task %s no longer exists", chunk.id, chunk.task_id)
        else:
            task = tasks[t_idx]
            credit = credited_minutes(chunk, now)
            done = min(task.completed_minutes + credit, task.estimated_minutes)
            tasks[t_idx] = replace(task, completed_minutes=done)
            logger.debug("credited %d min to task %s (%d/%d)",
                         credit, task.id, done, task.estimated_minutes)

    CHUNKS_COMPLETED.labels(type=chunk.type).inc()

    status = schedule.status
    if all(c.completed for c in chunks):
        status = STATUS_COMPLETED
        logger.info("schedule %s completed", schedule.id)
    return replace(schedule, chunks=chunks, status=status), tasks


def end_schedule(schedule: Schedule) -> Schedule:
    """Abandon an active schedule; unfinished chunks stay unfinished."""
    if schedule.status != STATUS_ACTIVE:
        return schedule
    logger.info("schedule %s ended early", schedule.id)
    return replace(schedule, status=STATUS_COMPLETED, ended_early=True)


def current_chunk(schedule: Schedule, now: Moment) -> Optional[Chunk]:
    minute = minute_of_day(now)
    for chunk in schedule.chunks:
        if not chunk.completed and chunk.start_minutes <= minute < chunk.end_minutes:
            return chunk
    return None


def next_pending_chunk(schedule: Schedule, now: Moment) -> Optional[Chunk]:
    """The current or next unfinished chunk; this is the one that gets reminders."""
    minute = minute_of_day(now)
    for chunk in schedule.chunks:
        if not chunk.completed and chunk.end_minutes > minute:
            return chunk
    return None


def chunk_countdown(chunk: Chunk, now: Moment) -> Tuple[int, Optional[int]]:
    """Seconds left in the chunk, and seconds until the next nag (None if none is due)."""
    now = as_timestamp(now)
    start = at_time_of_day(now, chunk.start_time)
    end = at_time_of_day(now, chunk.end_time)

    remaining = max(0, math.floor((end - now).total_seconds()))
    if chunk.nag_interval_minutes <= 0:
        return remaining, None

    # nags fall on start + k * interval, k >= 1, even before the chunk begins
    elapsed = math.floor((now - start).total_seconds())
    interval = chunk.nag_interval_minutes * 60
    k = max(0, elapsed // interval) + 1
    until_nag = k * interval - elapsed
    if until_nag > 0 and remaining > 0:
        return remaining, min(until_nag, remaining)
    return remaining, None
