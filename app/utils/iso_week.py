"""ISO 8601 week arithmetic.

A week runs Monday to Sunday and belongs to the year containing its Thursday,
so the ISO week-year of a date can differ from its calendar year in the first
and last days of the year.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from app.errors import InvalidTimePeriodError

DateLike = Union[date, datetime, int, float]


def to_date(value: DateLike) -> date:
    """
    Normalize a date, datetime or Unix timestamp (seconds, UTC) to a date.

    Example:
        >>> to_date(datetime(2025, 1, 1, 12, 30))
        datetime.date(2025, 1, 1)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromtimestamp(value, tz=timezone.utc).date()


def get_iso_week_number(value: DateLike) -> int:
    """
    Get the ISO week number (1-53) of a date.

    Example:
        >>> get_iso_week_number(date(2024, 12, 30))
        1
    """
    return to_date(value).isocalendar().week


def get_iso_week_year(value: DateLike) -> int:
    """
    Get the ISO week-year of a date.

    Example:
        >>> get_iso_week_year(date(2024, 12, 30))
        2025
        >>> get_iso_week_year(date(2021, 1, 1))
        2020
    """
    return to_date(value).isocalendar().year


def get_weeks_in_year(year: int) -> int:
    """
    Number of ISO weeks (52 or 53) in an ISO week-year.

    December 28th always falls in the last ISO week of its year.

    Example:
        >>> get_weeks_in_year(2025)
        52
        >>> get_weeks_in_year(2020)
        53
    """
    return date(year, 12, 28).isocalendar().week


def get_week_day(week_year: int, week_number: int, day_of_week: int) -> date:
    """
    Get the calendar date of a day (1 = Monday) inside an ISO week.

    Raises:
        InvalidTimePeriodError: If the week does not exist in that year
    """
    try:
        return date.fromisocalendar(week_year, week_number, day_of_week)
    except ValueError as e:
        raise InvalidTimePeriodError(
            f"Week {week_number} day {day_of_week} does not exist in ISO year {week_year}"
        ) from e


def get_iso_week_start(week_year: int, week_number: int) -> datetime:
    """
    Monday 00:00:00 of an ISO week.

    Raises:
        InvalidTimePeriodError: If the week does not exist in that year
    """
    return datetime.combine(get_week_day(week_year, week_number, 1), time.min)


def get_iso_week_end(week_year: int, week_number: int) -> datetime:
    """
    Sunday 23:59:59.999999 of an ISO week.

    Raises:
        InvalidTimePeriodError: If the week does not exist in that year
    """
    return datetime.combine(get_week_day(week_year, week_number, 7), time.max)


def get_current_iso_week(today: Optional[date] = None) -> tuple[int, int]:
    """Return (week_year, week_number) for today, or for ``today`` if given."""
    iso = (today or date.today()).isocalendar()
    return iso.year, iso.week


def get_previous_iso_week(week_year: int, week_number: int) -> tuple[int, int]:
    """
    Step back one ISO week, rolling over into the previous week-year.

    Example:
        >>> get_previous_iso_week(2021, 1)
        (2020, 53)
    """
    iso = (get_week_day(week_year, week_number, 1) - timedelta(weeks=1)).isocalendar()
    return iso.year, iso.week


def weeks_between(
    from_year: int,
    from_week: int,
    to_year: int,
    to_week: int,
) -> int:
    """
    Signed number of ISO weeks from one week to another.

    Example:
        >>> weeks_between(2024, 52, 2025, 2)
        2
    """
    start = get_week_day(from_year, from_week, 1)
    end = get_week_day(to_year, to_week, 1)
    return (end - start).days // 7
