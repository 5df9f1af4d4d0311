# chunk_scheduler/allocator.py
import logging
import uuid
from typing import Callable, List, Optional, Sequence

from .models import (
    CHUNK_BREAK,
    CHUNK_TASK,
    PRIORITY_RANK,
    Break,
    Chunk,
    Task,
)
from .timeutils import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


def sort_tasks_by_priority(tasks: Sequence[Task]) -> List[Task]:
    """Highest priority first; ties go to the task with the least progress."""
    return sorted(
        tasks,
        key=lambda t: (-PRIORITY_RANK.get(t.priority, 0), t.progress),
    )


def _break_chunk(item: Break, start: int, end: int, make_id: Callable[[], str]) -> Chunk:
    return Chunk(
        id=make_id(),
        type=CHUNK_BREAK,
        task_id="",
        title=f"Break ({item.duration_minutes} min)",
        priority="medium",
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
        duration_minutes=end - start,
        nag_interval_minutes=0,
    )


def allocate(tasks: Sequence[Task],
             start_time: str,
             end_time: str,
             breaks: Sequence[Break] = (),
             default_chunk_minutes: int = 30,
             default_nag_minutes: int = 15,
             make_id: Optional[Callable[[], str]] = None) -> List[Chunk]:
    """
    Sweep the window [start_time, end_time) once, handing out chunks to the
    available tasks round-robin and dropping in breaks at their times.

    Tasks are never modified. Returns chunks in time order; degenerate input
    (no available tasks, empty window) gives an empty or short list.
    """
    make_id = make_id or new_id
    window_start = time_to_minutes(start_time)
    window_end = time_to_minutes(end_time)

    pool = sort_tasks_by_priority([t for t in tasks if t.is_available])
    if not pool:
        return []

    pending_breaks = sorted(breaks, key=lambda b: time_to_minutes(b.time))
    break_times = [time_to_minutes(b.time) for b in pending_breaks]

    allocated = {t.id: 0 for t in pool}
    chunks: List[Chunk] = []
    cursor = window_start
    rr = 0
    bi = 0

    while cursor < window_end:
        # breaks win over task work once their time has come
        if bi < len(pending_breaks) and cursor >= break_times[bi]:
            item = pending_breaks[bi]
            end = min(cursor + item.duration_minutes, window_end)
            if end > cursor:
                chunks.append(_break_chunk(item, cursor, end, make_id))
            cursor = end
            bi += 1
            continue

        if not pool:
            break
        task = pool[rr]
        remaining = task.remaining_minutes - allocated[task.id]

        longest = window_end - cursor
        if bi < len(pending_breaks):
            longest = min(longest, break_times[bi] - cursor)
        size = task.chunk_minutes if task.chunk_minutes is not None else default_chunk_minutes
        length = min(size, remaining, longest)
        if length <= 0:
            break

        nag = (task.nag_interval_minutes if task.nag_interval_minutes is not None
               else default_nag_minutes)
        chunks.append(Chunk(
            id=make_id(),
            type=CHUNK_TASK,
            task_id=task.id,
            title=task.title,
            priority=task.priority,
            start_time=minutes_to_time(cursor),
            end_time=minutes_to_time(cursor + length),
            duration_minutes=length,
            nag_interval_minutes=nag,
        ))
        cursor += length
        allocated[task.id] += length

        if length >= remaining:
            # fully scheduled: the next task slides into this slot
            pool.pop(rr)
            if not pool:
                break
            rr %= len(pool)
        else:
            rr = (rr + 1) % len(pool)

    logger.debug("allocated %d chunks between %s and %s",
                 len(chunks), start_time, end_time)
    return chunks
