"""Tests for ISO week utilities."""
import pytest
from datetime import date, datetime, timezone


class TestIsoWeekNumbers:
    """Tests for week number / week-year lookups."""

    def test_week_number_mid_year(self):
        """Test a plain mid-year date."""
        from app.utils.iso_week import get_iso_week_number, get_iso_week_year

        assert get_iso_week_number(date(2025, 3, 28)) == 13
        assert get_iso_week_year(date(2025, 3, 28)) == 2025

    def test_week_year_rolls_forward(self):
        """Test that late December can belong to week 1 of the next year."""
        from app.utils.iso_week import get_iso_week_number, get_iso_week_year

        assert get_iso_week_number(date(2024, 12, 30)) == 1
        assert get_iso_week_year(date(2024, 12, 30)) == 2025

    def test_week_year_rolls_back(self):
        """Test that early January can belong to the last week of the previous year."""
        from app.utils.iso_week import get_iso_week_number, get_iso_week_year

        assert get_iso_week_number(date(2021, 1, 1)) == 53
        assert get_iso_week_year(date(2021, 1, 1)) == 2020

    def test_accepts_datetime_and_timestamp(self):
        """Test the accepted date-like inputs."""
        from app.utils.iso_week import get_iso_week_number, to_date

        assert to_date(datetime(2025, 1, 1, 23, 30)) == date(2025, 1, 1)
        # 2025-01-01T00:00:00Z
        assert to_date(1735689600) == date(2025, 1, 1)
        assert get_iso_week_number(datetime(2025, 1, 1, tzinfo=timezone.utc)) == 1

    @pytest.mark.parametrize(
        "year,expected",
        [(2020, 53), (2021, 52), (2024, 52), (2025, 52), (2026, 53)],
    )
    def test_weeks_in_year(self, year, expected):
        """Test 52/53 week years."""
        from app.utils.iso_week import get_weeks_in_year

        assert get_weeks_in_year(year) == expected


class TestIsoWeekBoundaries:
    """Tests for week start/end and membership."""

    def test_week_start_and_end(self):
        """Test Monday start and Sunday end."""
        from app.utils.iso_week import get_iso_week_end, get_iso_week_start

        start = get_iso_week_start(2025, 1)
        end = get_iso_week_end(2025, 1)

        assert start == datetime(2024, 12, 30, 0, 0, 0)
        assert end.date() == date(2025, 1, 5)
        assert (end.hour, end.minute, end.second) == (23, 59, 59)

    def test_week_day(self):
        """Test resolving a day inside a week."""
        from app.utils.iso_week import get_week_day

        assert get_week_day(2025, 5, 1) == date(2025, 1, 27)
        assert get_week_day(2025, 5, 7) == date(2025, 2, 2)

    def test_week_day_nonexistent_week(self):
        """Test that week 53 of a 52-week year is rejected."""
        from app.errors import InvalidTimePeriodError
        from app.utils.iso_week import get_week_day

        with pytest.raises(InvalidTimePeriodError):
            get_week_day(2025, 53, 1)

    def test_current_iso_week(self):
        """Test current week with an injected today."""
        from app.utils.iso_week import get_current_iso_week

        assert get_current_iso_week(date(2025, 3, 28)) == (2025, 13)
        assert get_current_iso_week(date(2021, 1, 3)) == (2020, 53)


class TestIsoWeekRoundTrip:
    """Week start maps back onto the same week coordinate."""

    @pytest.mark.parametrize("year", range(2015, 2031))
    def test_round_trip(self, year):
        """Test every week of a year."""
        from app.utils.iso_week import (
            get_iso_week_end,
            get_iso_week_number,
            get_iso_week_start,
            get_iso_week_year,
            get_weeks_in_year,
        )

        for week_number in range(1, get_weeks_in_year(year) + 1):
            start = get_iso_week_start(year, week_number)
            end = get_iso_week_end(year, week_number)
            assert get_iso_week_year(start) == year
            assert get_iso_week_number(start) == week_number
            assert get_iso_week_number(end) == week_number
            assert start.weekday() == 0


class TestIsoWeekArithmetic:
    """Tests for stepping between weeks."""

    def test_previous_week_same_year(self):
        """Test stepping back inside a year."""
        from app.utils.iso_week import get_previous_iso_week

        assert get_previous_iso_week(2025, 10) == (2025, 9)

    def test_previous_week_into_52_week_year(self):
        """Test stepping back from week 1 into a 52-week year."""
        from app.utils.iso_week import get_previous_iso_week

        assert get_previous_iso_week(2025, 1) == (2024, 52)

    def test_previous_week_into_53_week_year(self):
        """Test stepping back from week 1 into a 53-week year."""
        from app.utils.iso_week import get_previous_iso_week

        assert get_previous_iso_week(2021, 1) == (2020, 53)

    def test_weeks_between(self):
        """Test signed week distance."""
        from app.utils.iso_week import weeks_between

        assert weeks_between(2025, 5, 2025, 6) == 1
        assert weeks_between(2024, 52, 2025, 2) == 2
        assert weeks_between(2025, 6, 2025, 5) == -1
        assert weeks_between(2025, 5, 2025, 5) == 0
