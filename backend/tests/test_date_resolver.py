"""Tests for relative date resolution"""

from datetime import date, timedelta

import pytest

from crewcommand.exceptions import ValidationError
from crewcommand.services.date_resolver import (
    next_weekday,
    resolve_date_list,
    resolve_dates,
    resolve_single_date,
)

# A Thursday
TODAY = date(2026, 1, 15)


class TestResolveDates:
    """Single phrase expansion"""

    def test_today_tomorrow_yesterday(self):
        assert resolve_dates("today", TODAY) == [TODAY]
        assert resolve_dates("Tomorrow", TODAY) == [date(2026, 1, 16)]
        assert resolve_dates(" yesterday ", TODAY) == [date(2026, 1, 14)]

    def test_weekday_is_strictly_after_today(self):
        assert resolve_dates("friday", TODAY) == [date(2026, 1, 16)]
        assert resolve_dates("monday", TODAY) == [date(2026, 1, 19)]
        # Same weekday means next week's
        assert resolve_dates("thursday", TODAY) == [date(2026, 1, 22)]

    def test_weekday_inside_phrase(self):
        assert resolve_dates("next Monday", TODAY) == [date(2026, 1, 19)]
        assert resolve_dates("on wednesday", TODAY) == [date(2026, 1, 21)]

    def test_next_week_runs_monday_to_sunday(self):
        dates = resolve_dates("next week", TODAY)

        assert len(dates) == 7
        assert dates[0] == date(2026, 1, 19)
        assert dates[0].weekday() == 0
        assert dates[-1] == date(2026, 1, 25)

    def test_next_week_from_sunday(self):
        sunday = date(2026, 1, 18)

        dates = resolve_dates("next week", sunday)

        assert dates[0] == date(2026, 1, 26)
        assert dates[-1] == date(2026, 2, 1)

    @pytest.mark.parametrize("day", range(11, 18))
    def test_next_week_never_overlaps_this_week(self, day):
        today = date(2026, 1, day)

        this_week = resolve_dates("this week", today)
        next_week = resolve_dates("next week", today)

        assert not set(this_week) & set(next_week)
        assert next_week[0].weekday() == 0
        assert next_week[0] == this_week[-1] + timedelta(days=2)

    def test_rest_of_this_week_ends_saturday(self):
        dates = resolve_dates("rest of this week", TODAY)

        assert dates == [date(2026, 1, 15), date(2026, 1, 16), date(2026, 1, 17)]

    def test_this_week_from_sunday_is_full_week(self):
        sunday = date(2026, 1, 18)

        dates = resolve_dates("this week", sunday)

        assert len(dates) == 7
        assert dates[-1] == date(2026, 1, 24)

    def test_iso_date(self):
        assert resolve_dates("2026-02-03", TODAY) == [date(2026, 2, 3)]

    def test_invalid_iso_date(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_dates("2026-02-30", TODAY)
        assert "not a valid calendar date" in exc_info.value.detail

    @pytest.mark.parametrize("phrase", ["", "   ", "someday", "the 5th"])
    def test_unrecognized_phrase(self, phrase):
        with pytest.raises(ValidationError):
            resolve_dates(phrase, TODAY)


class TestHelpers:
    """Defaults and list resolution"""

    def test_next_weekday(self):
        assert next_weekday(TODAY, 3) == date(2026, 1, 22)
        assert next_weekday(TODAY, 4) == date(2026, 1, 16)

    def test_single_date_defaults(self):
        assert resolve_single_date(None, TODAY) == TODAY
        assert resolve_single_date(None, TODAY, default="tomorrow") == date(2026, 1, 16)
        assert resolve_single_date("next week", TODAY) == date(2026, 1, 19)

    def test_date_list_defaults_to_tomorrow(self):
        assert resolve_date_list(None, TODAY) == [date(2026, 1, 16)]
        assert resolve_date_list(["", "  "], TODAY) == [date(2026, 1, 16)]

    def test_date_list_keeps_spoken_order_without_duplicates(self):
        dates = resolve_date_list(["monday", "tomorrow", "2026-01-19"], TODAY)

        assert dates == [date(2026, 1, 19), date(2026, 1, 16)]
