# Shared fixtures for the scheduling engine tests
import itertools

import pandas as pd
import pytest

from chunk_scheduler.models import CHUNK_TASK, Chunk, Schedule, Task
from chunk_scheduler.timeutils import time_to_minutes


@pytest.fixture
def make_id():
    """Deterministic chunk ids: c1, c2, ..."""
    counter = itertools.count(1)
    return lambda: f"c{next(counter)}"


@pytest.fixture
def day():
    return pd.Timestamp("2025-11-03")


@pytest.fixture
def at(day):
    """Wall-clock instant on the test day, e.g. at("09:15") or at("09:15:30")."""
    def _at(hhmm):
        parts = [int(p) for p in hhmm.split(":")]
        seconds = parts[2] if len(parts) > 2 else 0
        return day + pd.Timedelta(hours=parts[0], minutes=parts[1], seconds=seconds)
    return _at


@pytest.fixture
def task():
    def _task(id="a", priority="high", estimated=120, completed=0, **kwargs):
        return Task(id=id, title=f"Task {id}", priority=priority,
                    estimated_minutes=estimated, completed_minutes=completed, **kwargs)
    return _task


@pytest.fixture
def schedule_of(day):
    """Schedule with task chunks c1..cn over the given (start, end) spans."""
    def _schedule_of(*spans, start="09:00", end="10:00", nag=0):
        chunks = []
        for i, (s, e) in enumerate(spans, start=1):
            chunks.append(Chunk(
                id=f"c{i}", type=CHUNK_TASK, task_id=f"t{i}", title=f"Task {i}",
                priority="medium", start_time=s, end_time=e,
                duration_minutes=time_to_minutes(e) - time_to_minutes(s),
                nag_interval_minutes=nag,
            ))
        return Schedule(id="s1", date=day.date().isoformat(),
                        start_time=start, end_time=end, chunks=chunks)
    return _schedule_of


def spans(schedule):
    return [(c.start_time, c.end_time) for c in schedule.chunks]
