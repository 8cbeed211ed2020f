"""Tests for period windows and percent change."""

from datetime import datetime, timedelta

import pytest

from app.dashboard.services.analytics.base import (
    PeriodToken,
    TimeWindow,
    parse_period,
    percent_change,
    previous_window,
    resolve_window,
)

NOW = datetime(2024, 3, 15, 12, 30, 45)

ALL_TOKENS = ["day", "week", "month", "year", "decade", None]


class TestParsePeriod:
    @pytest.mark.parametrize("raw", ["day", "DAY", " Day "])
    def test_case_insensitive(self, raw):
        assert parse_period(raw) == PeriodToken.DAY

    @pytest.mark.parametrize("raw", [None, "", "quarter", "monthly"])
    def test_unknown_falls_back_to_month(self, raw):
        assert parse_period(raw) == PeriodToken.MONTH

    def test_enum_passes_through(self):
        assert parse_period(PeriodToken.YEAR) == PeriodToken.YEAR


class TestResolveWindow:
    def test_day_starts_at_midnight(self):
        window = resolve_window("day", NOW)
        assert window.start_date == datetime(2024, 3, 15)
        assert window.end_date == NOW

    def test_week_is_rolling_seven_days(self):
        window = resolve_window("week", NOW)
        assert window.start_date == NOW - timedelta(days=7)

    def test_month_starts_on_the_first(self):
        assert resolve_window("month", NOW).start_date == datetime(2024, 3, 1)

    def test_year_starts_on_january_first(self):
        assert resolve_window("year", NOW).start_date == datetime(2024, 1, 1)

    def test_unknown_token_resolves_like_month(self):
        assert resolve_window("fortnight", NOW) == resolve_window("month", NOW)

    @pytest.mark.parametrize("token", ALL_TOKENS)
    def test_start_never_after_end(self, token):
        window = resolve_window(token, NOW)
        assert window.start_date <= window.end_date

    def test_first_instant_of_month_is_an_empty_span(self):
        first = datetime(2024, 3, 1)
        window = resolve_window("month", first)
        assert window.start_date == window.end_date == first


class TestPreviousWindow:
    @pytest.mark.parametrize("token", ALL_TOKENS)
    def test_ends_strictly_before_current_start(self, token):
        window = resolve_window(token, NOW)
        previous = previous_window(token, window)
        assert previous.end_date < window.start_date
        assert previous.start_date <= previous.end_date

    def test_ends_one_millisecond_before_current(self):
        window = resolve_window("month", NOW)
        previous = previous_window("month", window)
        assert window.start_date - previous.end_date == timedelta(milliseconds=1)

    def test_day(self):
        previous = previous_window("day", resolve_window("day", NOW))
        assert previous.start_date == datetime(2024, 3, 14, 23, 59, 59, 999000) - timedelta(days=1)

    def test_week(self):
        window = resolve_window("week", NOW)
        previous = previous_window("week", window)
        assert previous.end_date - previous.start_date == timedelta(days=7)

    def test_month_covers_previous_calendar_month(self):
        previous = previous_window("month", resolve_window("month", NOW))
        assert previous.start_date == datetime(2024, 2, 1)
        assert previous.end_date == datetime(2024, 2, 29, 23, 59, 59, 999000)

    def test_month_in_january_rolls_into_december(self):
        january = datetime(2024, 1, 20)
        previous = previous_window("month", resolve_window("month", january))
        assert previous.start_date == datetime(2023, 12, 1)

    def test_year_starts_january_first_of_year_before_previous_end(self):
        previous = previous_window("year", resolve_window("year", NOW))
        # previous_end falls on 2023-12-31, so the start is 2022-01-01
        assert previous.end_date.year == 2023
        assert previous.start_date == datetime(2022, 1, 1)


class TestTimeWindow:
    def test_rejects_inverted_bounds(self):
        with pytest.raises(ValueError):
            TimeWindow(start_date=NOW, end_date=NOW - timedelta(seconds=1))

    def test_is_immutable(self):
        window = resolve_window("day", NOW)
        with pytest.raises(AttributeError):
            window.start_date = NOW  # type: ignore[misc]


class TestPercentChange:
    @pytest.mark.parametrize(
        ("current", "previous", "expected"),
        [
            (0, 0, 0.0),
            (50, 0, 100.0),
            (150, 100, 50.0),
            (50, 100, -50.0),
            (1, 3, -66.67),
            (-5, 0, 0.0),
        ],
    )
    def test_values(self, current, previous, expected):
        assert percent_change(current, previous) == expected
