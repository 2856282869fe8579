"""Core data models — shared Pydantic types for the Promethee tracker.

The persisted progress document, the active quest list, the payloads the
content generator returns, and the API envelope all flow through these
types. Field aliases keep the JSON shape of the documents already stored
by earlier clients (camelCase keys, French quest fields).

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

Usage:
    from promethee.schemas import UserState, Quest, ApiResponse
"""

import datetime as dt
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

Domain = Literal[
    "Anglais",
    "Développement Web",
    "Ingénierie IA",
    "Conduite",
    "Bibliothèque",
    "Horlogerie",
]
"""Learning domains. Only the first three receive generated quests."""

ACTIVE_DOMAINS: tuple[str, ...] = ("Anglais", "Développement Web", "Ingénierie IA")

Difficulty = Literal["Facile", "Moyen", "Difficile", "Expert"]

SkillKey = Literal[
    "anglais", "webDev", "aiEngineering", "conduite", "bibliotheque", "horlogerie"
]
"""Keys of UserState.skill_levels and UserState.skill_points."""

SKILL_KEYS: tuple[str, ...] = (
    "anglais", "webDev", "aiEngineering", "conduite", "bibliotheque", "horlogerie",
)

CostType = Literal["BP", "SP"]

MIN_SKILL_LEVEL = 1.0
MAX_SKILL_LEVEL = 10.0
XP_PER_LEVEL = 1000
INITIAL_BUILD_POINTS = 1


def level_for_xp(xp: int) -> int:
    """Global level for a cumulative XP total: one level per 1000 XP, from 1."""
    return max(0, xp) // XP_PER_LEVEL + 1


def default_skill_levels() -> dict[str, float]:
    return {key: MIN_SKILL_LEVEL for key in SKILL_KEYS}


def default_skill_points() -> dict[str, int]:
    return {key: 0 for key in SKILL_KEYS}


class _CamelModel(BaseModel):
    """Base for documents stored with camelCase keys.

    Accepts both the alias and the Python field name; ignores unknown keys
    so documents written by newer clients still load.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Persisted progress document
# ---------------------------------------------------------------------------


class UserStats(_CamelModel):
    """Per-category counters that drive building tiers. Only ever increase."""

    words_mastered: int = 0
    prompts_tested: int = 0
    code_quests_completed: int = 0
    km_driven: int = 0
    books_read: int = 0
    watches_fixed: int = 0


class DailyRecord(_CamelModel):
    """Activity accumulated on one local calendar day.

    At most one record per date exists in UserState.history; same-day
    events are summed into it by progress.history.upsert_today_delta.
    """

    date: dt.date
    xp: int = 0
    steps_added: int = 0
    quests_completed: int = 0


class HistoryDelta(_CamelModel):
    """Increment applied to today's DailyRecord."""

    model_config = ConfigDict(frozen=True)

    xp: int = 0
    steps_added: int = 0
    quests_completed: int = 0


class UserState(_CamelModel):
    """The single persisted progress document.

    Missing fields load from the initial template (additive schema
    evolution); the skill maps are merged key by key so a document that
    predates a skill key still gets it. ``level`` is recomputed from ``xp``
    on every load.

    Mutable, but reducers in promethee.progress.store never mutate their
    input — they return a modified deep copy.
    """

    xp: int = 0
    level: int = 1
    gem_coins: int = 0
    steps_completed: int = 0
    skill_levels: dict[SkillKey, float] = Field(default_factory=default_skill_levels)
    last_quest_date: dt.date | None = None
    history: list[DailyRecord] = Field(default_factory=list)
    build_points: int = INITIAL_BUILD_POINTS
    skill_points: dict[SkillKey, int] = Field(default_factory=default_skill_points)
    unlocked_nodes: list[str] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        """Treats explicit nulls as missing so the template default applies."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("skill_levels", mode="before")
    @classmethod
    def _merge_skill_levels(cls, value: Any) -> dict[str, Any]:
        merged: dict[str, Any] = default_skill_levels()
        if isinstance(value, dict):
            merged.update({k: v for k, v in value.items() if k in merged and v is not None})
        return merged

    @field_validator("skill_points", mode="before")
    @classmethod
    def _merge_skill_points(cls, value: Any) -> dict[str, Any]:
        merged: dict[str, Any] = default_skill_points()
        if isinstance(value, dict):
            merged.update({k: v for k, v in value.items() if k in merged and v is not None})
        return merged

    @model_validator(mode="after")
    def _sync_level(self) -> "UserState":
        self.level = level_for_xp(self.xp)
        return self


# ---------------------------------------------------------------------------
# Quests
# ---------------------------------------------------------------------------


class QuestDraft(BaseModel):
    """A quest as returned by the content generator — no id, no status."""

    model_config = ConfigDict(extra="ignore")

    titre: str
    domaine: Domain
    difficulte: Difficulty
    xp_attribuee: int = Field(ge=0)
    description: str
    conditions_de_validation: str


class Quest(QuestDraft):
    """A quest in the active list. Completed at most once, never reopened."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    is_completed: bool = Field(default=False, alias="isCompleted")


# ---------------------------------------------------------------------------
# Content generator payloads
# ---------------------------------------------------------------------------


class EnglishQuestion(_CamelModel):
    """One multiple-choice question of the technical English quiz."""

    question: str
    options: list[str] = Field(min_length=3, max_length=3)
    correct_answer: str
    explanation: str

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "EnglishQuestion":
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer must be one of the options")
        return self


class AIChallengeScenario(_CamelModel):
    """A prompt-engineering scenario the user writes a prompt for."""

    title: str
    context: str
    goal: str


class AIPromptEvaluation(_CamelModel):
    """Expert evaluation of a user's prompt."""

    score: int
    feedback: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    improved_prompt: str

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(0, min(100, round(value)))
        return value


class SkillTreeAdvice(_CamelModel):
    """Advisor suggestion for the next skill-tree purchase."""

    advice: str = ""
    suggested_node_id: str = ""


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "QUEST_NOT_FOUND", "AI_ERROR",
    "AI_NOT_CONFIGURED". Not an enum — error codes grow with features.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
