"""Progress reducers — pure transitions of the persisted UserState.

Each reducer takes the current state and one event and returns a new
state; the input is never mutated. No I/O happens here: loading and saving
belong to ProgressService and the repository behind it.

All reducers are total over well-typed input. Events that should not
change anything (an already completed quest, a quiz with no correct
answers) return the state unchanged instead of raising.

Shared rules:
- XP gain recomputes the level (xp // 1000 + 1) and grants one build point
  when the level rises.
- A skill raise adds 0.1, clamps at 10 and rounds to one decimal; crossing
  an integer boundary grants one skill point for that skill.
- Every reward ends with a history delta for today.

Usage:
    from promethee.progress.store import apply_manual_step_increment
    state = apply_manual_step_increment(state)
"""

from __future__ import annotations

import datetime as dt
import math
import random
from typing import Protocol

from promethee.content.schemas import SkillNode
from promethee.progress import rules
from promethee.progress.history import add_to_day
from promethee.schemas import (
    MAX_SKILL_LEVEL,
    HistoryDelta,
    Quest,
    SkillKey,
    UserState,
    level_for_xp,
)


class RandomSource(Protocol):
    """Anything with random() -> float in [0, 1) — random.Random, or a test stub."""

    def random(self) -> float: ...


def initial_state() -> UserState:
    """Returns the fresh-start document (level 1, one build point)."""
    return UserState()


# ---------------------------------------------------------------------------
# In-place helpers — only ever applied to a reducer's private copy
# ---------------------------------------------------------------------------


def _gain_xp(state: UserState, amount: int) -> None:
    old_level = state.level
    state.xp += amount
    state.level = level_for_xp(state.xp)
    if state.level > old_level:
        state.build_points += 1


def _raise_skill(state: UserState, key: SkillKey) -> None:
    old_value = state.skill_levels[key]
    new_value = round(min(MAX_SKILL_LEVEL, old_value + rules.SKILL_STEP), 1)
    state.skill_levels[key] = new_value
    if math.floor(new_value) > math.floor(old_value):
        state.skill_points[key] += 1


def _record(state: UserState, today: dt.date | None, **delta: int) -> None:
    add_to_day(state.history, HistoryDelta(**delta), today or dt.date.today())


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def apply_quest_completion(
    state: UserState,
    quest: Quest,
    *,
    rng: RandomSource | None = None,
    today: dt.date | None = None,
) -> UserState:
    """Rewards a completed quest.

    No-op if the quest is already marked completed. Otherwise grants the
    quest's XP, 20% of it as coins, a 50% chance of +0.1 in the quest's
    skill, and one tick of the domain's stat counter (active domains only).

    Args:
        state: Current state. Not modified.
        quest: The quest being completed, still carrying is_completed=False.
        rng: Random source for the skill roll. Defaults to the random module.
        today: Local date for the history record and last_quest_date.

    Returns:
        The new state, or ``state`` itself when nothing applies.
    """
    if quest.is_completed:
        return state

    today = today or dt.date.today()
    rng = rng or random
    new_state = state.model_copy(deep=True)

    _gain_xp(new_state, quest.xp_attribuee)
    new_state.gem_coins += math.floor(quest.xp_attribuee * rules.QUEST_COIN_RATE)

    if rng.random() > rules.SKILL_GAIN_CHANCE:
        _raise_skill(new_state, rules.skill_key_for(quest.domaine))

    stat = rules.QUEST_STAT_COUNTERS.get(quest.domaine)
    if stat is not None:
        setattr(new_state.stats, stat, getattr(new_state.stats, stat) + 1)

    new_state.last_quest_date = today
    _record(new_state, today, xp=quest.xp_attribuee, quests_completed=1)
    return new_state


def apply_manual_step_increment(
    state: UserState, *, today: dt.date | None = None
) -> UserState:
    """Counts one more curriculum step: +10 XP, +1 coin."""
    new_state = state.model_copy(deep=True)
    new_state.steps_completed += 1
    _gain_xp(new_state, rules.STEP_XP)
    new_state.gem_coins += rules.STEP_COINS
    _record(new_state, today, xp=rules.STEP_XP, steps_added=1)
    return new_state


def apply_quiz_result(
    state: UserState, correct_count: int, *, today: dt.date | None = None
) -> UserState:
    """Rewards an English quiz by its number of correct answers.

    Zero (or a negative count) earns nothing and leaves no history trace.
    """
    if correct_count <= 0:
        return state

    new_state = state.model_copy(deep=True)
    xp_reward = correct_count * rules.QUIZ_XP_PER_CORRECT
    _gain_xp(new_state, xp_reward)
    new_state.gem_coins += correct_count * rules.QUIZ_COINS_PER_CORRECT
    _raise_skill(new_state, "anglais")
    new_state.stats.words_mastered += correct_count
    _record(new_state, today, xp=xp_reward, quests_completed=1)
    return new_state


def apply_challenge_score(
    state: UserState, score: int, *, today: dt.date | None = None
) -> UserState:
    """Rewards a scored prompt challenge. Scores are clamped into [0, 100]."""
    score = max(0, min(rules.CHALLENGE_MAX_SCORE, score))

    new_state = state.model_copy(deep=True)
    xp_reward = score * rules.CHALLENGE_XP_PER_POINT
    _gain_xp(new_state, xp_reward)
    new_state.gem_coins += score // 2
    _raise_skill(new_state, "aiEngineering")
    new_state.stats.prompts_tested += 1
    _record(new_state, today, xp=xp_reward, quests_completed=1)
    return new_state


def purchase_skill_node(
    state: UserState, node: SkillNode, skill_key: SkillKey
) -> UserState:
    """Pays for a node and records it as unlocked.

    The caller must have checked skill_tree.can_unlock first; no balance
    check happens here.

    Args:
        state: Current state. Not modified.
        node: The node being bought.
        skill_key: Skill whose points pay for SP nodes (the node's tree
            domain, from SkillTreeCatalog).
    """
    new_state = state.model_copy(deep=True)
    if node.cost_type == "BP":
        new_state.build_points -= node.cost
    else:
        new_state.skill_points[skill_key] -= node.cost
    new_state.unlocked_nodes.append(node.id)
    return new_state
