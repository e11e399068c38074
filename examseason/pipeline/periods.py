"""
Academic period classification.

Months map onto four academic periods; the two Finals periods form the exam
season and the two Start periods the non-exam season. Every other month is
unclassified and left out of the analysis.
"""

import re
from enum import Enum
from typing import Mapping, Optional, Tuple

import pandas as pd

from ..config import (
    DEFAULT_ACADEMIC_CALENDAR,
    SEMESTER_1_FINALS,
    SEMESTER_1_START,
    SEMESTER_2_FINALS,
    SEMESTER_2_START,
)

_STAMP_RE = re.compile(r'^(\d{4})(\d{2})$')


class Period(Enum):
    SEMESTER_1_START = SEMESTER_1_START
    SEMESTER_1_FINALS = SEMESTER_1_FINALS
    SEMESTER_2_START = SEMESTER_2_START
    SEMESTER_2_FINALS = SEMESTER_2_FINALS
    UNCLASSIFIED = 'Unclassified'


class Season(Enum):
    EXAM = 'exam'
    NON_EXAM = 'non-exam'


ACADEMIC_PERIODS = (
    Period.SEMESTER_1_START,
    Period.SEMESTER_1_FINALS,
    Period.SEMESTER_2_START,
    Period.SEMESTER_2_FINALS,
)

_SEASONS = {
    Period.SEMESTER_1_FINALS: Season.EXAM,
    Period.SEMESTER_2_FINALS: Season.EXAM,
    Period.SEMESTER_1_START: Season.NON_EXAM,
    Period.SEMESTER_2_START: Season.NON_EXAM,
}


def classify(month: int, calendar: Optional[Mapping[str, Tuple[int, ...]]] = None) -> Period:
    """
    Map a calendar month (1..12) to its academic period.

    Args:
        month: Month number
        calendar: Period label -> months; defaults to the standard calendar

    Returns:
        The matching Period, or Period.UNCLASSIFIED
    """
    month = int(month)
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    calendar = calendar or DEFAULT_ACADEMIC_CALENDAR
    for label, months in calendar.items():
        if month in months:
            return Period(label)
    return Period.UNCLASSIFIED


def season_of(period: Period) -> Optional[Season]:
    """Exam or non-exam season for a period; None when unclassified."""
    return _SEASONS.get(period)


def parse_period_month(stamp) -> Tuple[int, int]:
    """
    Split a ``YYYYMM`` stamp (string or integer) into year and month.

    Raises:
        ValueError: If the stamp is not six digits or the month is invalid
    """
    text = str(stamp).strip()
    if text.endswith('.0'):
        text = text[:-2]
    match = _STAMP_RE.match(text)
    if not match:
        raise ValueError(f"Invalid period month stamp: {stamp!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in period stamp: {stamp!r}")
    return year, month


def classify_stamp(stamp, calendar=None) -> Period:
    _, month = parse_period_month(stamp)
    return classify(month, calendar)


def tag_periods(frame: pd.DataFrame, column: str = 'period_month', calendar=None) -> pd.DataFrame:
    """
    Return a copy of ``frame`` with ``period`` and ``season`` label columns.

    The stamp column must already hold valid ``YYYYMM`` values. Unclassified
    rows get the 'Unclassified' period and a None season.
    """
    tagged = frame.copy()
    months = tagged[column].astype(str).str[-2:].astype(int)
    lookup = {m: classify(m, calendar) for m in range(1, 13)}
    periods = months.map(lookup)
    tagged['period'] = periods.map(lambda p: p.value)
    seasons = [season_of(p).value if season_of(p) else None for p in periods]
    tagged['season'] = pd.Series(seasons, index=tagged.index, dtype=object)
    return tagged
