# chunk_scheduler/timeutils.py
import re
from datetime import datetime
from typing import Union

import pandas as pd

from .errors import ScheduleValidationError


HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
MINUTES_PER_DAY = 24 * 60


def time_to_minutes(value: str) -> int:
    """Parse "HH:MM" into minutes since midnight. "24:00" is allowed as a window end."""
    m = HHMM_RE.match(str(value).strip())
    if not m:
        raise ScheduleValidationError(f"invalid time of day: {value!r}")
    hours, minutes = int(m.group(1)), int(m.group(2))
    total = hours * 60 + minutes
    if minutes >= 60 or total > MINUTES_PER_DAY:
        raise ScheduleValidationError(f"invalid time of day: {value!r}")
    return total


def minutes_to_time(minutes: int) -> str:
    minutes = int(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def as_timestamp(value: Union[str, datetime, pd.Timestamp]) -> pd.Timestamp:
    return pd.Timestamp(value)


def at_time_of_day(day: Union[datetime, pd.Timestamp], hhmm: str) -> pd.Timestamp:
    """Wall-clock instant for `hhmm` on the same calendar day as `day`."""
    day = as_timestamp(day)
    return day.normalize() + pd.Timedelta(minutes=time_to_minutes(hhmm))


def minute_of_day(moment: Union[datetime, pd.Timestamp]) -> int:
    moment = as_timestamp(moment)
    return moment.hour * 60 + moment.minute


def format_time(hhmm: str) -> str:
    """12-hour display form, e.g. "13:05" -> "1:05 PM"."""
    total = time_to_minutes(hhmm) % MINUTES_PER_DAY
    hours, minutes = divmod(total, 60)
    suffix = "AM" if hours < 12 else "PM"
    display = hours % 12 or 12
    return f"{display}:{minutes:02d} {suffix}"


def format_duration(minutes: float) -> str:
    minutes = int(round(minutes))
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def format_task_time(minutes: float, unit: str = "minutes") -> str:
    """Render a task quantity in the user's preferred unit."""
    if unit == "hours":
        return f"{minutes / 60:.2f}".rstrip("0").rstrip(".") + "h"
    return f"{int(round(minutes))} min"
