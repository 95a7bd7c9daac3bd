"""Print ISO week and quarter boundary information for a date.

Usage:
    python scripts/debug_quarter.py                # today
    python scripts/debug_quarter.py 2025-03-28
"""
import argparse
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.utils.iso_week import (
    get_iso_week_end,
    get_iso_week_number,
    get_iso_week_start,
    get_iso_week_year,
    get_weeks_in_year,
)
from app.utils.quarter import (
    get_final_weeks_of_quarter,
    get_first_week_of_quarter,
    get_previous_quarter,
    get_quarter_date_range,
    get_quarter_for_date,
    get_quarter_for_week,
    get_quarter_weeks,
    is_in_final_weeks,
)


def describe(day: date) -> list[str]:
    """Build the report lines for a date."""
    week_year = get_iso_week_year(day)
    week_number = get_iso_week_number(day)
    calendar_quarter = get_quarter_for_date(day)
    week_quarter = get_quarter_for_week(week_year, week_number)
    date_range = get_quarter_date_range(week_quarter.year, week_quarter.quarter)
    quarter_weeks = get_quarter_weeks(week_quarter.year, week_quarter.quarter)
    final_weeks = get_final_weeks_of_quarter(week_quarter.year, week_quarter.quarter)
    first_week = get_first_week_of_quarter(week_quarter.year, week_quarter.quarter)
    previous = get_previous_quarter(week_quarter.year, week_quarter.quarter)

    return [
        f"Date:                 {day.isoformat()} ({day.strftime('%A')})",
        f"ISO week:             {week_year}-W{week_number:02d} "
        f"({get_iso_week_start(week_year, week_number):%Y-%m-%d} .. "
        f"{get_iso_week_end(week_year, week_number):%Y-%m-%d})",
        f"Weeks in ISO year:    {get_weeks_in_year(week_year)}",
        f"Calendar quarter:     Q{calendar_quarter.quarter} {calendar_quarter.year}",
        f"Week's quarter:       Q{week_quarter.quarter} {week_quarter.year} "
        f"({date_range.start_date} .. {date_range.end_date})",
        f"Quarter weeks:        {quarter_weeks.start_week}..{quarter_weeks.end_week} "
        f"({len(quarter_weeks.weeks)} weeks)",
        f"First week:           W{first_week.week_number} {first_week.year}",
        f"Final week(s):        "
        + ", ".join(f"W{ref.week_number} {ref.year}" for ref in final_weeks),
        f"In final week:        {is_in_final_weeks(week_quarter.year, week_quarter.quarter, week_number)}",
        f"Previous quarter:     Q{previous.quarter} {previous.year}",
    ]


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Show ISO week / quarter info for a date")
    parser.add_argument(
        "date",
        nargs="?",
        type=date.fromisoformat,
        default=date.today(),
        help="Date in YYYY-MM-DD format (default: today)",
    )
    args = parser.parse_args()

    for line in describe(args.date):
        print(line)


if __name__ == "__main__":
    main()
