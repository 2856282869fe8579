"""Tests for promethee.schemas — stored documents and generator payloads."""

import datetime as dt

import pytest
from pydantic import ValidationError

from promethee.schemas import (
    AIPromptEvaluation,
    ApiError,
    ApiResponse,
    EnglishQuestion,
    Quest,
    QuestDraft,
    UserState,
)


class TestUserStateLoading:
    """UserState — additive merge onto the initial template."""

    def test_camel_case_document(self) -> None:
        state = UserState.model_validate(
            {
                "xp": 1200,
                "gemCoins": 40,
                "stepsCompleted": 12,
                "lastQuestDate": "2025-03-11",
                "history": [{"date": "2025-03-11", "xp": 30, "stepsAdded": 3}],
                "stats": {"wordsMastered": 4},
            }
        )
        assert state.gem_coins == 40
        assert state.last_quest_date == dt.date(2025, 3, 11)
        assert state.history[0].steps_added == 3
        assert state.history[0].quests_completed == 0
        assert state.stats.words_mastered == 4

    def test_level_recomputed_from_xp(self) -> None:
        state = UserState.model_validate({"xp": 2500, "level": 1})
        assert state.level == 3

    def test_missing_fields_take_template_values(self) -> None:
        state = UserState.model_validate({"xp": 10})
        assert state.build_points == 1
        assert state.unlocked_nodes == []

    def test_partial_skill_maps_are_merged(self) -> None:
        state = UserState.model_validate(
            {"skillLevels": {"anglais": 3.4}, "skillPoints": {"webDev": 2}}
        )
        assert state.skill_levels["anglais"] == 3.4
        assert state.skill_levels["horlogerie"] == 1.0
        assert state.skill_points["webDev"] == 2
        assert state.skill_points["anglais"] == 0

    def test_null_fields_fall_back(self) -> None:
        state = UserState.model_validate({"buildPoints": None, "stats": None})
        assert state.build_points == 1
        assert state.stats.books_read == 0

    def test_dump_uses_camel_case(self) -> None:
        dumped = UserState().model_dump(mode="json", by_alias=True)
        assert "gemCoins" in dumped
        assert "unlockedNodes" in dumped
        assert dumped["stats"]["codeQuestsCompleted"] == 0


class TestQuestModels:
    def _draft(self, **overrides) -> dict:
        data = {
            "titre": "Coach IA",
            "domaine": "Ingénierie IA",
            "difficulte": "Moyen",
            "xp_attribuee": 80,
            "description": "d",
            "conditions_de_validation": "c",
        }
        data.update(overrides)
        return data

    def test_unknown_domain_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QuestDraft.model_validate(self._draft(domaine="Cuisine"))

    def test_negative_xp_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QuestDraft.model_validate(self._draft(xp_attribuee=-5))

    def test_quest_uses_is_completed_alias(self) -> None:
        quest = Quest.model_validate({**self._draft(), "id": "q-1-0", "isCompleted": True})
        assert quest.is_completed is True
        assert quest.model_dump(by_alias=True)["isCompleted"] is True


class TestEnglishQuestion:
    def test_needs_three_options(self) -> None:
        with pytest.raises(ValidationError):
            EnglishQuestion.model_validate(
                {"question": "q", "options": ["a", "b"], "correctAnswer": "a", "explanation": "e"}
            )

    def test_answer_must_be_an_option(self) -> None:
        with pytest.raises(ValidationError, match="correctAnswer"):
            EnglishQuestion.model_validate(
                {
                    "question": "q",
                    "options": ["a", "b", "c"],
                    "correctAnswer": "d",
                    "explanation": "e",
                }
            )


class TestPromptEvaluation:
    @pytest.mark.parametrize(("raw", "expected"), [(130, 100), (-4, 0), (72.6, 73)])
    def test_score_clamped(self, raw, expected) -> None:
        evaluation = AIPromptEvaluation.model_validate(
            {"score": raw, "feedback": "f", "improvedPrompt": "p"}
        )
        assert evaluation.score == expected
        assert evaluation.strengths == []


class TestApiResponse:
    def test_error_envelope(self) -> None:
        body = ApiResponse(ok=False, error=ApiError(code="AI_ERROR", message="m")).model_dump()
        assert body == {"ok": False, "data": None, "error": {"code": "AI_ERROR", "message": "m"}}
