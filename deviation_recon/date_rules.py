"""
Date Classification Rules
Purpose: Deadline status for open measures and completion status for handled
measures
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

DUE_SOON_WINDOW = timedelta(days=31)


class Remark(Enum):
    OVERDUE = "Deadline verlopen"
    DUE_SOON = "Deadline verloopt binnen 31 dagen"
    NO_ACTION_NEEDED = "Geen actie vereist"
    NO_DATE = "Geen datum"


class Completion(Enum):
    ON_TIME = "on_time"
    LATE = "late"
    MISSING_DATES = "missing_dates"


def _as_day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _as_moment(value: Union[date, datetime]) -> datetime:
    return value if isinstance(value, datetime) else datetime.combine(value, time())


def classify_deadline(planned: Optional[date], now: Union[date, datetime]) -> Remark:
    """
    The deadline is midnight at the start of the planned day, compared with
    the current moment: once today has started, a deadline of today is overdue.
    """
    if planned is None:
        return Remark.NO_DATE
    deadline = _as_moment(_as_day(planned))
    moment = _as_moment(now)
    if deadline < moment:
        return Remark.OVERDUE
    if deadline <= moment + DUE_SOON_WINDOW:
        return Remark.DUE_SOON
    return Remark.NO_ACTION_NEEDED


def classify_completion(planned: Optional[date], done: Optional[date]) -> Completion:
    # finishing on the planned day counts as on time
    if planned is None or done is None:
        return Completion.MISSING_DATES
    if _as_day(done) > _as_day(planned):
        return Completion.LATE
    return Completion.ON_TIME


def days_late(planned: date, done: date) -> int:
    return (_as_day(done) - _as_day(planned)).days
