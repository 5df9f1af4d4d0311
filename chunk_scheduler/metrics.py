# chunk_scheduler/metrics.py
from prometheus_client import Counter, Summary


SCHEDULE_TIME = Summary(
    "schedule_generation_seconds",
    "Time spent allocating a day's chunks",
)

CHUNKS_COMPLETED = Counter(
    "chunks_completed_total",
    "Chunks marked complete, by chunk type",
    ["type"],
)

SCHEDULE_EDITS = Counter(
    "schedule_edits_total",
    "Applied timeline edits, by operation",
    ["operation"],  # move / resize / delete / edit
)

NAG_EVENTS = Counter(
    "nag_events_scheduled_total",
    "Reminder events armed for an active chunk, by kind",
    ["kind"],
)
