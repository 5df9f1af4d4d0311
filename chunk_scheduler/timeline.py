# chunk_scheduler/timeline.py
"""
Edits to a live chunk sequence.

Every operation takes a Schedule and returns a new one; the input is left
untouched, and a raised error means nothing was applied.

Move and delete are structural: the whole sequence is laid out again from the
window start with each chunk keeping its duration, cut short only where it
would run past the window end. Resize is local: only the resized chunk and,
when its end edge pushes into it, the next chunk change.
Manual edits replace fields directly and only re-sort, so they may leave gaps
or overlaps for the user to fix.
"""
import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from .errors import ChunkNotFoundError, ScheduleValidationError
from .metrics import SCHEDULE_EDITS
from .models import MIN_CHUNK_MINUTES, Chunk, Schedule, Task
from .timeutils import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)

EDGE_START = "start"
EDGE_END = "end"


def _index_of(chunks: Sequence[Chunk], chunk_id: str) -> int:
    for i, chunk in enumerate(chunks):
        if chunk.id == chunk_id:
            return i
    raise ChunkNotFoundError(chunk_id)


def _with_times(chunk: Chunk, start: int, end: int) -> Chunk:
    return replace(
        chunk,
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
        duration_minutes=end - start,
    )


def reflow(chunks: Sequence[Chunk],
           start_minutes: int,
           end_minutes: Optional[int] = None) -> List[Chunk]:
    """
    Lay chunks end to end from `start_minutes`, keeping every duration.

    With `end_minutes`, a chunk that would run past it is cut at the window
    end, and chunks left with less than the minimum duration are dropped.
    """
    cursor = start_minutes
    out: List[Chunk] = []
    for chunk in chunks:
        end = cursor + chunk.duration_minutes
        if end_minutes is not None and end > end_minutes:
            end = end_minutes
            if end - cursor < MIN_CHUNK_MINUTES:
                logger.warning("dropped chunk %s: no room left before %s",
                               chunk.id, minutes_to_time(end_minutes))
                continue
            logger.info("cut chunk %s to %d minutes to fit the window",
                        chunk.id, end - cursor)
        out.append(_with_times(chunk, cursor, end))
        cursor = end
    return out


def _relaid(schedule: Schedule, chunks: Sequence[Chunk], operation: str) -> Schedule:
    laid = reflow(chunks, schedule.start_minutes, schedule.end_minutes)
    SCHEDULE_EDITS.labels(operation=operation).inc()
    return replace(schedule, chunks=laid)


def move_chunk(schedule: Schedule, chunk_id: str, target_id: str) -> Schedule:
    """Drop a chunk onto another one: it takes the target's place in the order."""
    idx = _index_of(schedule.chunks, chunk_id)
    if target_id == chunk_id:
        return replace(schedule, chunks=list(schedule.chunks))

    remaining = list(schedule.chunks)
    moved = remaining.pop(idx)
    remaining.insert(_index_of(remaining, target_id), moved)
    logger.debug("moved chunk %s before %s", chunk_id, target_id)
    return _relaid(schedule, remaining, "move")


def move_chunk_to_time(schedule: Schedule, chunk_id: str, drop_time: str) -> Schedule:
    """Drop a chunk on open timeline space at `drop_time`."""
    idx = _index_of(schedule.chunks, chunk_id)
    drop = time_to_minutes(drop_time)

    remaining = list(schedule.chunks)
    moved = remaining.pop(idx)
    insert_at = len(remaining)
    for i, chunk in enumerate(remaining):
        if drop < chunk.start_minutes:
            insert_at = i
            break
    remaining.insert(insert_at, moved)
    logger.debug("moved chunk %s to slot %d (dropped at %s)", chunk_id, insert_at, drop_time)
    return _relaid(schedule, remaining, "move")


def resize_chunk(schedule: Schedule, chunk_id: str, edge: str, new_time: str) -> Schedule:
    """
    Drag one edge of a chunk to `new_time`.

    The start edge stays between the previous chunk's end (or the window
    start) and five minutes before the chunk's own end. The end edge stays at
    least five minutes after the start and may push the next chunk's start
    later, but never leaves that chunk shorter than five minutes.
    """
    chunks = list(schedule.chunks)
    i = _index_of(chunks, chunk_id)
    chunk = chunks[i]
    target = time_to_minutes(new_time)
    start, end = chunk.start_minutes, chunk.end_minutes

    if edge == EDGE_START:
        floor = chunks[i - 1].end_minutes if i > 0 else schedule.start_minutes
        start = max(floor, min(target, end - MIN_CHUNK_MINUTES))
    elif edge == EDGE_END:
        nxt = chunks[i + 1] if i + 1 < len(chunks) else None
        ceiling = nxt.end_minutes - MIN_CHUNK_MINUTES if nxt else schedule.end_minutes
        ceiling = min(ceiling, schedule.end_minutes)
        end = min(ceiling, max(target, start + MIN_CHUNK_MINUTES))
        if nxt is not None and end > nxt.start_minutes:
            chunks[i + 1] = _with_times(nxt, end, nxt.end_minutes)
    else:
        raise ScheduleValidationError(f"unknown edge {edge!r}, expected 'start' or 'end'")

    if end - start < MIN_CHUNK_MINUTES:
        raise ScheduleValidationError(
            f"no room to resize chunk {chunk_id}: neighbours leave less than "
            f"{MIN_CHUNK_MINUTES} minutes")

    chunks[i] = _with_times(chunk, start, end)
    SCHEDULE_EDITS.labels(operation="resize").inc()
    logger.debug("resized chunk %s to %s-%s", chunk_id, chunks[i].start_time, chunks[i].end_time)
    return replace(schedule, chunks=chunks)


def delete_chunk(schedule: Schedule, chunk_id: str) -> Schedule:
    """Remove a chunk and close the gap by shifting later chunks earlier."""
    idx = _index_of(schedule.chunks, chunk_id)
    remaining = list(schedule.chunks)
    remaining.pop(idx)
    logger.debug("deleted chunk %s", chunk_id)
    return _relaid(schedule, remaining, "delete")


def edit_chunk(schedule: Schedule,
               chunk_id: str,
               start_time: str,
               end_time: str,
               nag_interval_minutes: int,
               task_id: Optional[str] = None,
               tasks: Sequence[Task] = ()) -> Schedule:
    """
    Replace a chunk's times, nag interval and optionally its task.

    The result is only re-sorted by start time; gaps and overlaps are left
    as the user made them.
    """
    idx = _index_of(schedule.chunks, chunk_id)
    start, end = time_to_minutes(start_time), time_to_minutes(end_time)

    if end - start < MIN_CHUNK_MINUTES:
        logger.warning("rejected edit of chunk %s: %s-%s is too short", chunk_id, start_time, end_time)
        raise ScheduleValidationError(
            f"duration must be at least {MIN_CHUNK_MINUTES} minutes")
    if start < schedule.start_minutes or end > schedule.end_minutes:
        logger.warning("rejected edit of chunk %s: %s-%s is outside the schedule",
                       chunk_id, start_time, end_time)
        raise ScheduleValidationError(
            f"chunk times must be within {schedule.start_time}-{schedule.end_time}")

    chunk = _with_times(schedule.chunks[idx], start, end)
    chunk = replace(chunk, nag_interval_minutes=max(0, int(nag_interval_minutes)))
    if task_id:
        task = next((t for t in tasks if t.id == task_id), None)
        chunk = replace(
            chunk,
            task_id=task_id,
            title=task.title if task else chunk.title,
            priority=task.priority if task else chunk.priority,
        )

    chunks = list(schedule.chunks)
    chunks[idx] = chunk
    chunks.sort(key=lambda c: c.start_minutes)
    SCHEDULE_EDITS.labels(operation="edit").inc()
    return replace(schedule, chunks=chunks)


def check_contiguity(schedule: Schedule) -> List[str]:
    """Problems that break the tiling of the window; empty when there are none."""
    problems: List[str] = []
    chunks = schedule.chunks
    if not chunks:
        return problems

    if chunks[0].start_minutes != schedule.start_minutes:
        problems.append(
            f"first chunk starts at {chunks[0].start_time}, not {schedule.start_time}")
    for chunk in chunks:
        if chunk.duration_minutes <= 0 or chunk.end_minutes <= chunk.start_minutes:
            problems.append(f"chunk {chunk.id} has no duration")
        if chunk.start_minutes < schedule.start_minutes or chunk.end_minutes > schedule.end_minutes:
            problems.append(
                f"chunk {chunk.id} ({chunk.start_time}-{chunk.end_time}) is outside the window")
    for prev, cur in zip(chunks, chunks[1:]):
        if prev.end_minutes < cur.start_minutes:
            problems.append(f"gap between {prev.end_time} and {cur.start_time}")
        elif prev.end_minutes > cur.start_minutes:
            problems.append(f"overlap: {prev.end_time} runs past {cur.start_time}")
    return problems
