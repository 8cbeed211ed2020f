"""Period resolution and change calculation for dashboard statistics."""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta


class PeriodToken(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


DEFAULT_PERIOD = PeriodToken.MONTH


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start_date, end_date]`` interval scoping an aggregate query."""

    start_date: datetime
    end_date: datetime

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Window start {self.start_date.isoformat()} is after end "
                f"{self.end_date.isoformat()}"
            )


def parse_period(token: "str | PeriodToken | None") -> PeriodToken:
    """Normalize a caller-supplied period token.

    Matching is case-insensitive; anything unrecognized (including ``None``)
    falls back to ``month`` instead of being rejected.
    """
    if isinstance(token, PeriodToken):
        return token
    if token is None:
        return DEFAULT_PERIOD
    try:
        return PeriodToken(token.strip().lower())
    except ValueError:
        return DEFAULT_PERIOD


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_window(token: "str | PeriodToken | None", now: datetime) -> TimeWindow:
    """Get the window for a period, ending at ``now``.

    Args:
        token: One of 'day', 'week', 'month', 'year'. Defaults to 'month'.
        now: The current instant.

    Returns:
        TimeWindow from the period start up to ``now``.
    """
    period = parse_period(token)
    today_start = _midnight(now)

    if period == PeriodToken.DAY:
        start = today_start
    elif period == PeriodToken.WEEK:
        start = now - timedelta(days=7)
    elif period == PeriodToken.YEAR:
        start = today_start.replace(month=1, day=1)
    else:
        start = today_start.replace(day=1)

    return TimeWindow(start_date=start, end_date=now)


def previous_window(token: "str | PeriodToken | None", window: TimeWindow) -> TimeWindow:
    """Get the comparison window that immediately precedes ``window``.

    The previous window ends one millisecond before ``window`` starts so the
    boundary instant is never counted twice. Its start re-applies the period
    width rule anchored at that end.

    Args:
        token: Period token used to build ``window``.
        window: The current window.

    Returns:
        TimeWindow for the previous period.
    """
    period = parse_period(token)
    previous_end = window.start_date - timedelta(milliseconds=1)

    if period == PeriodToken.DAY:
        previous_start = previous_end - timedelta(days=1)
    elif period == PeriodToken.WEEK:
        previous_start = previous_end - timedelta(days=7)
    elif period == PeriodToken.YEAR:
        previous_start = _midnight(previous_end).replace(year=previous_end.year - 1, month=1, day=1)
    else:
        previous_start = _midnight(previous_end).replace(day=1)

    return TimeWindow(start_date=previous_start, end_date=previous_end)


def percent_change(current: int | float, previous: int | float) -> float:
    """Calculate percentage change between two values.

    Args:
        current: Current period value.
        previous: Previous period value.

    Returns:
        Percentage change rounded to 2 decimal places.
        Returns 100.0 if previous is 0 and current > 0.
        Returns 0.0 if previous is 0 and current is not positive.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(((current - previous) / previous) * 100, 2)
