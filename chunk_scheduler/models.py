# chunk_scheduler/models.py
from dataclasses import dataclass, field
from typing import List, Optional

from .timeutils import time_to_minutes


PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

CHUNK_TASK = "task"
CHUNK_BREAK = "break"

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"

MIN_CHUNK_MINUTES = 5


@dataclass
class SchedulerPrefs:
    default_chunk_minutes: int = 30
    default_nag_minutes: int = 15     # 0 disables reminders
    default_break_minutes: int = 15
    notifications_enabled: bool = False
    time_unit: str = "minutes"        # "minutes" or "hours", display only


@dataclass
class Task:
    id: str
    title: str
    priority: str                     # high / medium / low
    estimated_minutes: int
    completed_minutes: int = 0
    chunk_minutes: Optional[int] = None         # overrides the global chunk size
    nag_interval_minutes: Optional[int] = None  # overrides the global nag interval
    created_at: Optional[str] = None

    @property
    def remaining_minutes(self) -> int:
        return self.estimated_minutes - self.completed_minutes

    @property
    def progress(self) -> float:
        if self.estimated_minutes <= 0:
            return 0.0
        return self.completed_minutes / self.estimated_minutes

    @property
    def is_available(self) -> bool:
        return self.completed_minutes < self.estimated_minutes


@dataclass
class Break:
    time: str                         # "HH:MM"
    duration_minutes: int
    id: str = ""


@dataclass
class Chunk:
    id: str
    type: str                         # "task" or "break"
    task_id: str
    title: str                        # snapshot at scheduling time
    priority: str
    start_time: str                   # "HH:MM"
    end_time: str
    duration_minutes: int
    nag_interval_minutes: int = 0
    completed: bool = False
    completed_at: Optional[str] = None

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def is_break(self) -> bool:
        return self.type == CHUNK_BREAK


@dataclass
class Schedule:
    id: str
    date: str                         # ISO date, a schedule spans one day
    start_time: str
    end_time: str
    chunks: List[Chunk] = field(default_factory=list)
    breaks: List[Break] = field(default_factory=list)
    default_chunk_minutes: int = 30
    status: str = STATUS_ACTIVE
    name: Optional[str] = None
    created_at: Optional[str] = None
    ended_early: bool = False

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def find_chunk(self, chunk_id: str) -> Optional[Chunk]:
        for chunk in self.chunks:
            if chunk.id == chunk_id:
                return chunk
        return None
