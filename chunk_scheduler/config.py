# chunk_scheduler/config.py
import logging
import os

from .models import SchedulerPrefs


DEFAULT_CHUNK_MINUTES = int(os.getenv("CHUNK_SCHEDULER_CHUNK_MINUTES", "30"))
DEFAULT_NAG_MINUTES = int(os.getenv("CHUNK_SCHEDULER_NAG_MINUTES", "15"))
DEFAULT_BREAK_MINUTES = int(os.getenv("CHUNK_SCHEDULER_BREAK_MINUTES", "15"))
TIME_UNIT = os.getenv("CHUNK_SCHEDULER_TIME_UNIT", "minutes")
LOG_LEVEL = os.getenv("CHUNK_SCHEDULER_LOG_LEVEL", "INFO").upper()
METRICS_PORT = int(os.getenv("CHUNK_SCHEDULER_METRICS_PORT", "8000"))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_prefs() -> SchedulerPrefs:
    """Defaults for a new schedule, overridable through the environment."""
    unit = TIME_UNIT if TIME_UNIT in ("minutes", "hours") else "minutes"
    return SchedulerPrefs(
        default_chunk_minutes=DEFAULT_CHUNK_MINUTES,
        default_nag_minutes=DEFAULT_NAG_MINUTES,
        default_break_minutes=DEFAULT_BREAK_MINUTES,
        time_unit=unit,
    )


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
