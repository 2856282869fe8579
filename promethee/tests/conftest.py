"""Shared test fixtures for the Promethee test suite.

Factory-pattern fixtures that return callables accepting **overrides.
Every test module imports from here — no reinventing test scaffolding.

Fixtures:
    mock_provider: Factory for MockProvider instances
    make_state: Factory for UserState instances
    make_draft / make_quest: Factories for quest drafts and active quests
    static_content: The real content/ directory, loaded and validated
    make_service: Factory for ProgressService over an in-memory repository
    prompts_dir: Temp directory with every base prompt file
"""

import datetime as dt
from pathlib import Path

import pytest

from promethee.ai.prompts import PROMPT_NAMES
from promethee.ai.providers.mock import MockProvider
from promethee.config import PROJECT_ROOT
from promethee.content.loader import StaticContent, load_content
from promethee.hooks.memory import InMemoryProgressRepository
from promethee.progress.service import ProgressService
from promethee.schemas import Quest, QuestDraft, UserState

TODAY = dt.date(2025, 3, 12)


class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


ALWAYS_GAIN = FixedRandom(0.99)
NEVER_GAIN = FixedRandom(0.0)


# ---------------------------------------------------------------------------
# Prompt file helpers
# ---------------------------------------------------------------------------


def write_prompt_file(prompts_dir: Path, name: str, content: str) -> Path:
    """Writes a prompt file, creating the directory if needed."""
    prompts_dir.mkdir(parents=True, exist_ok=True)
    path = prompts_dir / name
    path.write_text(content, encoding="utf-8")
    return path


def setup_base_prompts(prompts_dir: Path) -> None:
    """Writes a minimal base prompt for every prompt name."""
    for name in PROMPT_NAMES:
        write_prompt_file(prompts_dir, f"{name}_base.md", f"Prompt {name}.")


# ---------------------------------------------------------------------------
# MockProvider factory
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_provider():
    """Returns a factory function for creating MockProvider instances."""

    def _make(**kwargs) -> MockProvider:
        return MockProvider(**kwargs)

    return _make


# ---------------------------------------------------------------------------
# State and quest factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_state():
    """Returns a factory for UserState. Defaults to the initial state."""

    def _make(**overrides) -> UserState:
        return UserState(**overrides)

    return _make


def _draft_data(**overrides) -> dict:
    data = {
        "titre": "Sprint FCC : Étapes 1 à 10",
        "domaine": "Développement Web",
        "difficulte": "Facile",
        "xp_attribuee": 100,
        "description": "Valide les 10 prochaines étapes sur FreeCodeCamp.",
        "conditions_de_validation": "Valide tes étapes sur le compteur.",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_draft():
    """Returns a factory for QuestDraft (a Web Dev quest worth 100 XP)."""

    def _make(**overrides) -> QuestDraft:
        return QuestDraft(**_draft_data(**overrides))

    return _make


@pytest.fixture
def make_quest():
    """Returns a factory for open Quest instances with id ``q-1-0``."""

    def _make(**overrides) -> Quest:
        defaults = {"id": "q-1-0", "is_completed": False}
        defaults.update(overrides)
        return Quest(**_draft_data(**defaults))

    return _make


# ---------------------------------------------------------------------------
# Static content and service
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def static_content() -> StaticContent:
    """The shipped content/ directory, validated."""
    return load_content(PROJECT_ROOT / "content")


@pytest.fixture
def make_service(static_content):
    """Returns a factory for ProgressService over an in-memory repository.

    Accepts ``state``, ``quests``, ``rng`` and ``today`` overrides. The
    repository is reachable as ``service._repository``.
    """

    def _make(
        state: UserState | None = None,
        quests: list[Quest] | None = None,
        rng=ALWAYS_GAIN,
        today: dt.date = TODAY,
    ) -> ProgressService:
        repository = InMemoryProgressRepository(state=state, quests=quests)
        return ProgressService(
            repository, static_content, rng=rng, clock=lambda: today
        )

    return _make


@pytest.fixture
def prompts_dir(tmp_path) -> Path:
    """Creates a temp directory with every base prompt."""
    directory = tmp_path / "prompts"
    setup_base_prompts(directory)
    return directory
