"""Calendar lookup response models."""
from datetime import date, datetime

from app.models.base import CamelModel
from app.models.time_period import QuarterDateRange, QuarterPeriod, WeekRef


class QuarterInfo(CamelModel):
    """Week layout of a quarter."""

    year: int
    quarter: int
    date_range: QuarterDateRange
    start_week: int
    end_week: int
    weeks: list[int]
    first_week: WeekRef
    final_weeks: list[WeekRef]
    weeks_in_year: int
    previous_quarter: QuarterPeriod
    next_quarter: QuarterPeriod


class WeekOption(CamelModel):
    """A selectable week inside a quarter."""

    year: int
    quarter: int
    week_number: int
    label: str


class DateInfo(CamelModel):
    """ISO week and quarter coordinates of a calendar date."""

    calendar_date: date
    week_year: int
    week_number: int
    quarter: QuarterPeriod
    week_start: datetime
    week_end: datetime
    is_final_week_of_quarter: bool
