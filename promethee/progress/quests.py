"""Quest lifecycle — from generated draft to completed quest.

Drafts from the content generator get a client-side id and start open.
Completion flips a quest exactly once and hands the reward to
apply_quest_completion; unknown ids and repeat completions change nothing.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass

from promethee.progress.store import RandomSource, apply_quest_completion
from promethee.schemas import Quest, QuestDraft, UserState


@dataclass(frozen=True)
class QuestCompletion:
    """Outcome of complete_quest. ``applied`` is False for rejected completions."""

    quests: list[Quest]
    state: UserState
    applied: bool


def materialize_quests(
    drafts: Sequence[QuestDraft], now: dt.datetime | None = None
) -> list[Quest]:
    """Turns drafts into open quests with ids ``q-<epoch ms>-<index>``."""
    stamp = int((now or dt.datetime.now()).timestamp() * 1000)
    return [
        Quest(**draft.model_dump(), id=f"q-{stamp}-{index}", is_completed=False)
        for index, draft in enumerate(drafts)
    ]


def find_quest(quests: Sequence[Quest], quest_id: str) -> Quest | None:
    for quest in quests:
        if quest.id == quest_id:
            return quest
    return None


def complete_quest(
    quests: Sequence[Quest],
    state: UserState,
    quest_id: str,
    *,
    rng: RandomSource | None = None,
    today: dt.date | None = None,
) -> QuestCompletion:
    """Marks a quest completed and applies its reward.

    Args:
        quests: The active quest list. Not modified.
        state: Current progress state. Not modified.
        quest_id: Id of the quest to complete.
        rng: Random source for the skill roll.
        today: Local date for the history record.

    Returns:
        QuestCompletion with the new list and state, or the inputs
        unchanged (applied=False) if the id is unknown or the quest is
        already completed.
    """
    quest = find_quest(quests, quest_id)
    if quest is None or quest.is_completed:
        return QuestCompletion(quests=list(quests), state=state, applied=False)

    updated = [
        q.model_copy(update={"is_completed": True}) if q.id == quest_id else q
        for q in quests
    ]
    new_state = apply_quest_completion(state, quest, rng=rng, today=today)
    return QuestCompletion(quests=updated, state=new_state, applied=True)
