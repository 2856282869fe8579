"""Current daily streak, derived from the history log on demand."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence

from promethee.schemas import DailyRecord


def current_streak(
    history: Sequence[DailyRecord], today: dt.date | None = None
) -> int:
    """Counts consecutive active days ending today or yesterday.

    The most recent record must be dated today or yesterday, otherwise the
    streak is broken and the result is 0. From there, records are walked
    newest first; each one at most one day before the previous counted
    record extends the streak, and the first gap ends it.

    Relies on history holding at most one record per date.

    Args:
        history: Daily records in any order.
        today: The local calendar date. Defaults to ``date.today()``.

    Returns:
        The streak length in days, >= 0.
    """
    if not history:
        return 0

    today = today or dt.date.today()
    ordered = sorted(history, key=lambda record: record.date, reverse=True)

    last_active = ordered[0].date
    if last_active not in (today, today - dt.timedelta(days=1)):
        return 0

    streak = 0
    cursor = last_active
    for record in ordered:
        if abs((cursor - record.date).days) > 1:
            break
        streak += 1
        cursor = record.date
    return streak
