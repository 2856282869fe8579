"""Hook interfaces — abstract base classes for swappable persistence.

The progress service talks to storage only through ProgressRepository.
Two implementations ship: JsonFileProgressRepository (the default, two
JSON documents on the local disk) and InMemoryProgressRepository (a dict
stub for tests and throwaway runs).

Tier 1 leaf module: imports only from abc (stdlib) and promethee.schemas
(also Tier 1). No project services, no orchestration.

To add a backend, subclass ProgressRepository and implement every
abstract method. Python raises TypeError at instantiation if one is
missing.

Usage:
    from promethee.hooks.interfaces import ProgressRepository
"""

from abc import ABC, abstractmethod

from promethee.schemas import Quest, UserState


class ProgressRepository(ABC):
    """Stores the progress document and the active quest list.

    The two are independent documents: either may be missing or unreadable
    without affecting the other. Loading never raises for bad stored data;
    a missing or corrupt document loads as its empty default (the initial
    state, or no quests), so the app always starts.

    Saves overwrite the whole document and are idempotent. Callers
    serialise access (ProgressService holds a lock around load-reduce-save),
    so implementations need no locking of their own.
    """

    @abstractmethod
    async def load_state(self) -> UserState:
        """Loads the progress document.

        Returns:
            The stored UserState, merged onto the initial template, or the
            initial state if nothing usable is stored.
        """
        ...

    @abstractmethod
    async def save_state(self, state: UserState) -> None:
        """Persists the progress document, replacing any previous one."""
        ...

    @abstractmethod
    async def load_quests(self) -> list[Quest]:
        """Loads the active quest list (empty if none is stored)."""
        ...

    @abstractmethod
    async def save_quests(self, quests: list[Quest]) -> None:
        """Persists the active quest list, replacing any previous one."""
        ...
