"""Progress service — the single writer of the persisted documents.

Every state change runs as one load → reduce → save cycle under an
asyncio.Lock, so two events landing on the same day's history record can
never overwrite each other. Reducers stay pure; this is the only place
that touches the repository.

Quest regeneration is the one flow with an AI call in the middle. The
call runs outside the lock; a generation ticket taken before it lets the
service discard a result that a newer regeneration has superseded.

Tier 3 service module: imports the progress core (Tier 2), the hook
interface and the static content types.

Usage:
    from promethee.progress.service import ProgressService

    service = ProgressService(repository, content)
    state = await service.increment_step()
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from promethee.content.loader import StaticContent
from promethee.hooks.interfaces import ProgressRepository
from promethee.progress import quests as quest_lifecycle
from promethee.progress import store
from promethee.progress.buildings import BuildingStatus, resolve_town
from promethee.progress.history import HistoryPeriod, HistorySummary, summarize_history
from promethee.progress.skill_tree import SkillTreeCatalog, can_unlock
from promethee.progress.store import RandomSource
from promethee.progress.streak import current_streak
from promethee.schemas import Quest, QuestDraft, UserState

logger = logging.getLogger(__name__)

QuestSource = Callable[[UserState], Awaitable[Sequence[QuestDraft]]]


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an action that may be rejected without being an error."""

    state: UserState
    applied: bool


@dataclass(frozen=True)
class QuestActionResult(ActionResult):
    quests: list[Quest]


class ProgressService:
    """Serialised access to the progress document and the quest list.

    Args:
        repository: Where the two documents live.
        content: Validated buildings and skill trees.
        rng: Random source for the quest skill roll.
        clock: Returns the local calendar date. Injected by tests.
    """

    def __init__(
        self,
        repository: ProgressRepository,
        content: StaticContent,
        *,
        rng: RandomSource | None = None,
        clock: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self._repository = repository
        self._buildings = content.buildings
        self._catalog = SkillTreeCatalog(content.skill_trees)
        self._rng = rng or random.Random()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._quest_generation = 0

    @property
    def catalog(self) -> SkillTreeCatalog:
        return self._catalog

    def today(self) -> dt.date:
        return self._clock()

    # -- reads -----------------------------------------------------------

    async def get_state(self) -> UserState:
        return await self._repository.load_state()

    async def get_quests(self) -> list[Quest]:
        return await self._repository.load_quests()

    async def streak(self, state: UserState | None = None) -> int:
        state = state or await self.get_state()
        return current_streak(state.history, self.today())

    async def town(self) -> list[BuildingStatus]:
        state = await self.get_state()
        return resolve_town(self._buildings, state.stats)

    async def history(self, period: HistoryPeriod) -> HistorySummary:
        state = await self.get_state()
        return summarize_history(state.history, period, self.today())

    # -- transitions -----------------------------------------------------

    async def _transition(
        self, reduce: Callable[[UserState], UserState], event: str
    ) -> UserState:
        async with self._lock:
            state = await self._repository.load_state()
            new_state = reduce(state)
            if new_state is not state:
                await self._repository.save_state(new_state)
                self._log_level_up(state, new_state, event)
            return new_state

    async def increment_step(self) -> UserState:
        today = self.today()
        return await self._transition(
            lambda s: store.apply_manual_step_increment(s, today=today), "step"
        )

    async def apply_quiz_result(self, correct_count: int) -> UserState:
        today = self.today()
        return await self._transition(
            lambda s: store.apply_quiz_result(s, correct_count, today=today), "quiz"
        )

    async def apply_challenge_score(self, score: int) -> UserState:
        today = self.today()
        return await self._transition(
            lambda s: store.apply_challenge_score(s, score, today=today), "challenge"
        )

    async def complete_quest(self, quest_id: str) -> QuestActionResult:
        """Completes an active quest. Unknown or finished quests are not applied."""
        async with self._lock:
            quests = await self._repository.load_quests()
            state = await self._repository.load_state()
            outcome = quest_lifecycle.complete_quest(
                quests, state, quest_id, rng=self._rng, today=self.today()
            )
            if not outcome.applied:
                logger.debug("Quest %s not completable, ignoring", quest_id)
                return QuestActionResult(state=state, applied=False, quests=outcome.quests)

            await self._repository.save_quests(outcome.quests)
            await self._repository.save_state(outcome.state)
            self._log_level_up(state, outcome.state, "quest")
            return QuestActionResult(
                state=outcome.state, applied=True, quests=outcome.quests
            )

    async def unlock_node(self, node_id: str) -> ActionResult:
        """Buys a skill-tree node if the unlock gate allows it.

        Raises:
            KeyError: If ``node_id`` is not in the catalog.
        """
        entry = self._catalog.get(node_id)
        if entry is None:
            raise KeyError(node_id)

        async with self._lock:
            state = await self._repository.load_state()
            if not can_unlock(state, entry.node, entry.skill_key):
                logger.debug("Unlock of %s refused by the gate", node_id)
                return ActionResult(state=state, applied=False)

            new_state = store.purchase_skill_node(state, entry.node, entry.skill_key)
            await self._repository.save_state(new_state)
            logger.info(
                "Unlocked skill node %s (%d %s)",
                node_id,
                entry.node.cost,
                entry.node.cost_type,
            )
            return ActionResult(state=new_state, applied=True)

    async def regenerate_quests(self, source: QuestSource) -> list[Quest] | None:
        """Replaces the active quests with freshly generated ones.

        Args:
            source: Async callable producing drafts for a state snapshot
                (ContentGenerator.generate_daily_quests in production).
                Errors it raises propagate and leave the stored list as is.

        Returns:
            The new quest list, or None if a newer regeneration started
            while this one was waiting and its result was discarded.
        """
        self._quest_generation += 1
        ticket = self._quest_generation

        snapshot = await self.get_state()
        drafts = await source(snapshot)

        async with self._lock:
            if ticket != self._quest_generation:
                logger.info(
                    "Discarding stale quest generation %d (current is %d)",
                    ticket,
                    self._quest_generation,
                )
                return None
            quests = quest_lifecycle.materialize_quests(drafts)
            await self._repository.save_quests(quests)
            return quests

    # -- logging ---------------------------------------------------------

    @staticmethod
    def _log_level_up(before: UserState, after: UserState, event: str) -> None:
        if after.level > before.level:
            logger.info(
                "Level up %d -> %d after %s (xp=%d, buildPoints=%d)",
                before.level,
                after.level,
                event,
                after.xp,
                after.build_points,
            )
