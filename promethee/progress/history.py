"""Daily history — the one primitive that writes UserState.history.

Every reducer ends by folding its XP / step / quest delta into today's
DailyRecord. Records are keyed by local calendar date; a date appears at
most once, which is what makes the streak walk in progress.streak sound.

Also provides the windowed summaries the history screen shows.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from promethee.schemas import DailyRecord, HistoryDelta, UserState

HistoryPeriod = Literal["week", "month", "year"]

_PERIOD_DAYS = {"week": 7, "month": 30}
_YEAR_RECORD_LIMIT = 50


def add_to_day(history: list[DailyRecord], delta: HistoryDelta, day: dt.date) -> None:
    """Folds a delta into ``day``'s record in place, appending it if absent.

    Callers own ``history`` (a reducer's private copy). Use
    upsert_today_delta for the pure version.
    """
    for record in history:
        if record.date == day:
            record.xp += delta.xp
            record.steps_added += delta.steps_added
            record.quests_completed += delta.quests_completed
            return
    history.append(
        DailyRecord(
            date=day,
            xp=delta.xp,
            steps_added=delta.steps_added,
            quests_completed=delta.quests_completed,
        )
    )


def upsert_today_delta(
    state: UserState, delta: HistoryDelta, today: dt.date | None = None
) -> UserState:
    """Returns a copy of ``state`` with ``delta`` added to today's record.

    Args:
        state: The current progress document. Not modified.
        delta: XP, steps and quest count to add.
        today: The local calendar date to record under. Defaults to
            ``date.today()``.

    Returns:
        The new state.
    """
    new_state = state.model_copy(deep=True)
    add_to_day(new_state.history, delta, today or dt.date.today())
    return new_state


@dataclass(frozen=True)
class HistorySummary:
    """Records in a display window plus their totals."""

    period: HistoryPeriod
    records: list[DailyRecord]
    total_xp: int
    total_quests: int
    total_steps: int


def summarize_history(
    history: Sequence[DailyRecord],
    period: HistoryPeriod,
    today: dt.date | None = None,
) -> HistorySummary:
    """Selects the records for a period, oldest first, and totals them.

    ``week`` and ``month`` keep records from the last 7 / 30 days
    (inclusive of the boundary day); ``year`` keeps the latest 50 records.
    """
    today = today or dt.date.today()
    ordered = sorted(history, key=lambda record: record.date)

    if period in _PERIOD_DAYS:
        limit = today - dt.timedelta(days=_PERIOD_DAYS[period])
        window = [record for record in ordered if record.date >= limit]
    else:
        window = ordered[-_YEAR_RECORD_LIMIT:]

    return HistorySummary(
        period=period,
        records=window,
        total_xp=sum(record.xp for record in window),
        total_quests=sum(record.quests_completed for record in window),
        total_steps=sum(record.steps_added for record in window),
    )
