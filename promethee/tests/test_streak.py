"""Tests for promethee.progress.streak — the daily streak."""

import datetime as dt

from promethee.progress.streak import current_streak
from promethee.schemas import DailyRecord
from promethee.tests.conftest import TODAY


def _history(*days_ago: int) -> list[DailyRecord]:
    return [DailyRecord(date=TODAY - dt.timedelta(days=d), xp=10) for d in days_ago]


class TestCurrentStreak:
    """current_streak — consecutive days ending today or yesterday."""

    def test_empty_history(self) -> None:
        assert current_streak([], TODAY) == 0

    def test_today_only(self) -> None:
        assert current_streak(_history(0), TODAY) == 1

    def test_yesterday_only(self) -> None:
        assert current_streak(_history(1), TODAY) == 1

    def test_last_activity_two_days_ago_breaks_streak(self) -> None:
        assert current_streak(_history(2, 3, 4), TODAY) == 0

    def test_three_consecutive_days(self) -> None:
        assert current_streak(_history(0, 1, 2), TODAY) == 3

    def test_gap_stops_the_walk(self) -> None:
        assert current_streak(_history(0, 1, 3, 4), TODAY) == 2

    def test_streak_ending_yesterday(self) -> None:
        assert current_streak(_history(1, 2, 3, 5), TODAY) == 3

    def test_unsorted_input(self) -> None:
        assert current_streak(_history(2, 0, 1), TODAY) == 3

    def test_month_boundary(self) -> None:
        today = dt.date(2025, 3, 1)
        history = [
            DailyRecord(date=dt.date(2025, 2, 27)),
            DailyRecord(date=dt.date(2025, 2, 28)),
            DailyRecord(date=dt.date(2025, 3, 1)),
        ]
        assert current_streak(history, today) == 3
