# chunk_scheduler/errors.py


class SchedulerError(Exception):
    """Base class for errors raised by the scheduling engine."""


class ScheduleValidationError(SchedulerError, ValueError):
    """An edit or input was rejected; nothing was changed."""


class ChunkNotFoundError(SchedulerError, KeyError):
    """A chunk id is not part of the schedule (usually a stale id)."""

    def __init__(self, chunk_id: str):
        super().__init__(chunk_id)
        self.chunk_id = chunk_id

    def __str__(self) -> str:
        return f"chunk {self.chunk_id!r} is not in the schedule"
