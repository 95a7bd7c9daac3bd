"""Calendar router - ISO week and quarter lookups."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Path, Query

from app.errors import http_error_from
from app.models.calendar import DateInfo, QuarterInfo, WeekOption
from app.utils.iso_week import (
    get_current_iso_week,
    get_iso_week_end,
    get_iso_week_number,
    get_iso_week_start,
    get_iso_week_year,
    get_weeks_in_year,
)
from app.utils.quarter import (
    get_final_weeks_of_quarter,
    get_first_week_of_quarter,
    get_next_quarter,
    get_previous_quarter,
    get_quarter_date_range,
    get_quarter_for_week,
    get_quarter_weeks,
    is_in_final_weeks,
)


router = APIRouter(prefix="/calendar", tags=["calendar"])


def build_week_options(year: int, quarter: int, current_week: int) -> list[WeekOption]:
    """
    Label a quarter's weeks relative to the current one.

    Example:
        For current week 42: "Week 41 (past)", "Week 42 (current)",
        "Week 43 (next)", "Week 44".
    """
    weeks = get_quarter_weeks(year, quarter).weeks
    next_week = next((week for week in weeks if week > current_week), None)

    options = []
    for week in weeks:
        if week == current_week:
            suffix = " (current)"
        elif week == next_week:
            suffix = " (next)"
        elif week < current_week:
            suffix = " (past)"
        else:
            suffix = ""
        options.append(
            WeekOption(year=year, quarter=quarter, week_number=week, label=f"Week {week}{suffix}")
        )
    return options


@router.get("/quarters/{year}/{quarter}", response_model=QuarterInfo)
async def get_quarter_info(
    year: int = Path(..., ge=1, le=9998),
    quarter: int = Path(..., ge=1, le=4),
):
    """
    Get date range and ISO week layout of a quarter.

    - Weeks are attributed to the quarter containing their Thursday
    """
    try:
        quarter_weeks = get_quarter_weeks(year, quarter)
        return QuarterInfo(
            year=year,
            quarter=quarter,
            date_range=get_quarter_date_range(year, quarter),
            start_week=quarter_weeks.start_week,
            end_week=quarter_weeks.end_week,
            weeks=quarter_weeks.weeks,
            first_week=get_first_week_of_quarter(year, quarter),
            final_weeks=get_final_weeks_of_quarter(year, quarter),
            weeks_in_year=get_weeks_in_year(year),
            previous_quarter=get_previous_quarter(year, quarter),
            next_quarter=get_next_quarter(year, quarter),
        )
    except ValueError as e:
        raise http_error_from(e)


@router.get("/quarters/{year}/{quarter}/weeks", response_model=list[WeekOption])
async def get_available_weeks(
    year: int = Path(..., ge=1, le=9998),
    quarter: int = Path(..., ge=1, le=4),
    current_week: Optional[int] = Query(None, alias="currentWeek", ge=1, le=53),
):
    """
    List the quarter's weeks labelled past / current / next.

    - Without currentWeek, today's ISO week is used; a quarter of an earlier
      week-year is all past, one of a later week-year is all upcoming
    """
    if current_week is None:
        week_year, week_number = get_current_iso_week()
        if week_year == year:
            current_week = week_number
        else:
            current_week = 0 if week_year < year else 54
    try:
        return build_week_options(year, quarter, current_week)
    except ValueError as e:
        raise http_error_from(e)


@router.get("/dates/{day}", response_model=DateInfo)
async def get_date_info(day: date):
    """
    Get ISO week and quarter coordinates of a date.

    - The ISO week-year may differ from the calendar year around New Year
    """
    week_year = get_iso_week_year(day)
    week_number = get_iso_week_number(day)
    owner = get_quarter_for_week(week_year, week_number)
    return DateInfo(
        calendar_date=day,
        week_year=week_year,
        week_number=week_number,
        quarter=owner,
        week_start=get_iso_week_start(week_year, week_number),
        week_end=get_iso_week_end(week_year, week_number),
        is_final_week_of_quarter=is_in_final_weeks(owner.year, owner.quarter, week_number),
    )
