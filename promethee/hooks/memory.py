"""In-memory repository — dict-backed ProgressRepository (STORAGE_BACKEND=memory).

Keeps the serialised documents in a dict and validates them again on
load, so tests exercise the same JSON shape the file repository writes.
Data is lost on restart.

Tier 2 service module: imports from promethee.hooks.interfaces (Tier 1)
and promethee.schemas (Tier 1).

Usage:
    from promethee.hooks.memory import InMemoryProgressRepository

    repo = InMemoryProgressRepository()
    await repo.save_state(state)
"""

from typing import Any

from promethee.hooks.interfaces import ProgressRepository
from promethee.schemas import Quest, UserState


class InMemoryProgressRepository(ProgressRepository):
    """Keeps the two documents as JSON-shaped dicts for the life of the process.

    Args:
        state: Optional stored state to start from.
        quests: Optional stored quest list to start from.
    """

    def __init__(
        self,
        state: UserState | None = None,
        quests: list[Quest] | None = None,
    ) -> None:
        self._state_doc: dict[str, Any] | None = None
        self._quest_docs: list[dict[str, Any]] = []
        self.save_count = 0
        if state is not None:
            self._state_doc = state.model_dump(mode="json", by_alias=True)
        if quests:
            self._quest_docs = [q.model_dump(mode="json", by_alias=True) for q in quests]

    async def load_state(self) -> UserState:
        if self._state_doc is None:
            return UserState()
        return UserState.model_validate(self._state_doc)

    async def save_state(self, state: UserState) -> None:
        self._state_doc = state.model_dump(mode="json", by_alias=True)
        self.save_count += 1

    async def load_quests(self) -> list[Quest]:
        return [Quest.model_validate(doc) for doc in self._quest_docs]

    async def save_quests(self, quests: list[Quest]) -> None:
        self._quest_docs = [q.model_dump(mode="json", by_alias=True) for q in quests]
