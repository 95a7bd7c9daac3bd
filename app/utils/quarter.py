"""Quarter arithmetic on top of ISO weeks.

Quarters are calendar-month based (Q1 = Jan 1 - Mar 31). A week is attributed
to the quarter containing its Thursday, which is also how ISO assigns weeks to
years, so the four quarters of a year partition that year's ISO weeks.
"""
from datetime import date, timedelta

from app.errors import InvalidTimePeriodError
from app.models.time_period import (
    QuarterDateRange,
    QuarterPeriod,
    QuarterWeeks,
    TimePeriod,
    WeekRef,
)
from app.utils.iso_week import (
    DateLike,
    get_iso_week_end,
    get_iso_week_start,
    get_previous_iso_week,
    get_week_day,
    to_date,
)

THURSDAY = 3  # date.weekday() index


def _check_quarter(quarter: int) -> None:
    if quarter not in (1, 2, 3, 4):
        raise InvalidTimePeriodError(f"Quarter must be between 1 and 4, got {quarter}")


def get_quarter_date_range(year: int, quarter: int) -> QuarterDateRange:
    """
    Get the calendar boundaries of a quarter.

    Args:
        year: Calendar year
        quarter: Quarter number (1-4)

    Returns:
        First and last calendar day of the quarter

    Raises:
        InvalidTimePeriodError: If quarter is out of range

    Example:
        >>> r = get_quarter_date_range(2025, 1)
        >>> (r.start_date, r.end_date)
        (datetime.date(2025, 1, 1), datetime.date(2025, 3, 31))
    """
    _check_quarter(quarter)
    start = date(year, 3 * (quarter - 1) + 1, 1)
    if quarter == 4:
        end = date(year, 12, 31)
    else:
        end = date(year, 3 * quarter + 1, 1) - timedelta(days=1)
    return QuarterDateRange(start_date=start, end_date=end)


def get_quarter_for_date(value: DateLike) -> QuarterPeriod:
    """Calendar quarter containing a date."""
    day = to_date(value)
    return QuarterPeriod(year=day.year, quarter=(day.month - 1) // 3 + 1)


def get_quarter_for_week(week_year: int, week_number: int) -> QuarterPeriod:
    """
    Quarter an ISO week belongs to (the quarter holding its Thursday).

    Raises:
        InvalidTimePeriodError: If the week does not exist in that year
    """
    return get_quarter_for_date(get_week_day(week_year, week_number, 4))


def _quarter_thursdays(year: int, quarter: int) -> list[date]:
    date_range = get_quarter_date_range(year, quarter)
    thursday = date_range.start_date + timedelta(
        days=(THURSDAY - date_range.start_date.weekday()) % 7
    )
    thursdays = []
    while thursday <= date_range.end_date:
        thursdays.append(thursday)
        thursday += timedelta(weeks=1)
    return thursdays


def get_quarter_weeks(year: int, quarter: int) -> QuarterWeeks:
    """
    Get the ISO weeks whose Thursday falls inside the quarter.

    Every returned week number belongs to ISO week-year ``year``.

    Example:
        >>> get_quarter_weeks(2025, 1).weeks == list(range(1, 14))
        True
        >>> get_quarter_weeks(2024, 4).start_week
        40
    """
    weeks = [thursday.isocalendar().week for thursday in _quarter_thursdays(year, quarter)]
    return QuarterWeeks(
        start_week=weeks[0],
        end_week=weeks[-1],
        weeks=weeks,
        start_date=get_iso_week_start(year, weeks[0]).date(),
        end_date=get_iso_week_end(year, weeks[-1]).date(),
    )


def get_first_week_of_quarter(year: int, quarter: int) -> WeekRef:
    """
    First ISO week of a quarter.

    Example:
        >>> get_first_week_of_quarter(2025, 2).week_number
        14
    """
    return WeekRef(week_number=get_quarter_weeks(year, quarter).start_week, year=year)


def get_final_weeks_of_quarter(year: int, quarter: int) -> list[WeekRef]:
    """
    Week(s) closing a quarter: the ISO week holding the quarter's last Thursday.

    Example:
        >>> get_final_weeks_of_quarter(2025, 1)
        [WeekRef(week_number=13, year=2025)]
    """
    return [WeekRef(week_number=get_quarter_weeks(year, quarter).end_week, year=year)]


def is_in_final_weeks(year: int, quarter: int, week_number: int) -> bool:
    """Check whether a week closes its quarter."""
    return any(
        ref.week_number == week_number for ref in get_final_weeks_of_quarter(year, quarter)
    )


def get_previous_quarter(year: int, quarter: int) -> QuarterPeriod:
    """
    Quarter before the given one, wrapping Q1 into Q4 of the previous year.

    Example:
        >>> get_previous_quarter(2025, 1)
        QuarterPeriod(year=2024, quarter=4)
    """
    _check_quarter(quarter)
    if quarter == 1:
        return QuarterPeriod(year=year - 1, quarter=4)
    return QuarterPeriod(year=year, quarter=quarter - 1)


def get_next_quarter(year: int, quarter: int) -> QuarterPeriod:
    """Quarter after the given one, wrapping Q4 into Q1 of the next year."""
    _check_quarter(quarter)
    if quarter == 4:
        return QuarterPeriod(year=year + 1, quarter=1)
    return QuarterPeriod(year=year, quarter=quarter + 1)


def validate_time_period(period: TimePeriod) -> None:
    """
    Ensure a period's week exists and belongs to its quarter.

    Raises:
        InvalidTimePeriodError: If the week is not part of the quarter
    """
    owner = get_quarter_for_week(period.year, period.week_number)
    if (owner.year, owner.quarter) != (period.year, period.quarter):
        raise InvalidTimePeriodError(
            f"Week {period.week_number} of {period.year} belongs to "
            f"Q{owner.quarter} {owner.year}, not Q{period.quarter} {period.year}"
        )


def week_period(week_year: int, week_number: int) -> TimePeriod:
    """Build a TimePeriod for an ISO week, deriving its quarter."""
    owner = get_quarter_for_week(week_year, week_number)
    return TimePeriod(year=week_year, quarter=owner.quarter, week_number=week_number)


def get_previous_week(period: TimePeriod) -> TimePeriod:
    """
    The week before ``period``, with its quarter recomputed.

    Example:
        >>> get_previous_week(TimePeriod(year=2025, quarter=1, week_number=1))
        TimePeriod(year=2024, quarter=4, week_number=52, day_of_week=None)
    """
    return week_period(*get_previous_iso_week(period.year, period.week_number))
