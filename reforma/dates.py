"""Permissive date handling shared by the analytics modules"""
import calendar
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a stored timestamp into a naive datetime.

    Accepts datetime/date objects, ISO strings, epoch seconds and
    Firestore-style ``{"seconds": ...}`` dicts. Returns None when the value
    is empty or cannot be parsed.
    """
    if value is None or value == '':
        return None
    if isinstance(value, dict) and 'seconds' in value:
        value = value['seconds']
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = pd.to_datetime(value, unit='s', errors='coerce')
    elif isinstance(value, (datetime, date, str)):
        parsed = pd.to_datetime(value, errors='coerce')
    else:
        return None

    if pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        # Keep the wall-clock time, drop the offset
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime()


def parse_date(value: Any, now: datetime) -> datetime:
    """Like to_datetime, but falls back to ``now`` instead of returning None."""
    parsed = to_datetime(value)
    return parsed if parsed is not None else now


def in_period(moment: datetime, month: int, year: int) -> bool:
    return moment.month == month and moment.year == year


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def period_end(month: int, year: int) -> datetime:
    """Last instant of the given month"""
    return datetime(year, month, days_in_month(month, year), 23, 59, 59, 999999)
