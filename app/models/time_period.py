"""Time coordinate models (year / quarter / ISO week / day)."""
from datetime import date
from enum import IntEnum
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel


class DayOfWeek(IntEnum):
    """ISO day numbers, Monday = 1."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @property
    def label(self) -> str:
        return self.name.capitalize()


class TimePeriod(CamelModel):
    """A week within a quarter, optionally narrowed to a day."""

    year: int = Field(ge=1, le=9998)
    quarter: int = Field(ge=1, le=4)
    week_number: int = Field(ge=1, le=53)
    day_of_week: Optional[DayOfWeek] = None

    model_config = {"frozen": True}

    def same_week(self, other: "TimePeriod") -> bool:
        return (self.year, self.quarter, self.week_number) == (
            other.year,
            other.quarter,
            other.week_number,
        )

    def same_quarter(self, other: "TimePeriod") -> bool:
        return (self.year, self.quarter) == (other.year, other.quarter)

    def __str__(self) -> str:
        return f"{self.year}-Q{self.quarter}-W{self.week_number}"


class QuarterPeriod(CamelModel):
    """A calendar quarter."""

    year: int = Field(ge=1, le=9998)
    quarter: int = Field(ge=1, le=4)

    model_config = {"frozen": True}


class WeekRef(CamelModel):
    """An ISO week identified by week-year and number."""

    week_number: int
    year: int


class QuarterDateRange(CamelModel):
    """Calendar-month aligned quarter boundaries."""

    start_date: date
    end_date: date


class QuarterWeeks(CamelModel):
    """ISO weeks attributed to a quarter."""

    start_week: int
    end_week: int
    weeks: list[int]
    start_date: date
    end_date: date
