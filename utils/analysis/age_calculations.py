"""
Specimen age and testing-date checks.

Dates arrive from forms, the database and imported records in several
shapes: ``date``/``datetime`` objects, ISO strings, and timestamp-like
objects carrying ``seconds`` (or a ``to_date()``/``toDate()`` accessor).
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union


AGE_CAP_DAYS = 28
AGE_OVER_CAP = f'>{AGE_CAP_DAYS}'


def to_date(value) -> Optional[date]:
    """
    Normalize a date-like value to a ``date``.

    Parameters
    ----------
    value : date, datetime, str, mapping or timestamp-like object

    Returns
    -------
    date or None
        None when the value is missing or cannot be interpreted
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace('Z', '+00:00')).date()
        except ValueError:
            return None
    if isinstance(value, dict):
        seconds = value.get('seconds', value.get('_seconds'))
        if seconds is None:
            return None
        return _from_seconds(seconds)
    for accessor in ('to_date', 'toDate', 'to_datetime'):
        method = getattr(value, accessor, None)
        if callable(method):
            return to_date(method())
    seconds = getattr(value, 'seconds', None)
    if seconds is not None:
        return _from_seconds(seconds)
    return None


def _from_seconds(seconds) -> Optional[date]:
    try:
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc).date()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def calculate_age(casting_date, testing_date) -> Union[int, str]:
    """
    Age of a specimen at testing.

    Parameters
    ----------
    casting_date, testing_date : date-like
        See ``to_date`` for accepted shapes

    Returns
    -------
    int or str
        Whole days between the dates, ``'>28'`` from 28 days on, ``''`` when
        either date is invalid
    """
    casting = to_date(casting_date)
    testing = to_date(testing_date)
    if casting is None or testing is None:
        return ''
    days = (testing - casting).days
    if days >= AGE_CAP_DAYS:
        return AGE_OVER_CAP
    return days


def format_age(age) -> str:
    """Age column text, '-' when unknown."""
    if age is None or age == '':
        return '-'
    return str(age)


@dataclass
class TestingDateCheck:
    """Outcome of comparing a scheduled testing date with today."""
    can_test: bool
    is_before: bool
    is_after: bool


def check_testing_date(scheduled, today: Optional[date] = None) -> TestingDateCheck:
    """
    Compare the scheduled testing date with today.

    Testing before the scheduled date needs an explicit override, so
    ``can_test`` is False in that case. A missing date never blocks testing.
    """
    today = today or date.today()
    scheduled = to_date(scheduled)
    if scheduled is None:
        return TestingDateCheck(can_test=True, is_before=False, is_after=False)
    is_before = today < scheduled
    is_after = today > scheduled
    return TestingDateCheck(can_test=not is_before, is_before=is_before, is_after=is_after)


def format_certificate_date(value) -> str:
    """Certificate date text (dd/mm/YYYY), 'N/A' when invalid."""
    parsed = to_date(value)
    if parsed is None:
        return 'N/A'
    return parsed.strftime('%d/%m/%Y')
