"""Content generator — quests, quizzes and prompt challenges from Gemini.

Every method is one single-shot JSON-mode call through an AIProvider:
render the prompt template, ask for JSON matching a response schema,
validate the reply with pydantic. Anything that goes wrong surfaces as a
CollaboratorError with one of three codes:

- AI_ERROR: the provider raised (network, quota, auth, SDK error)
- AI_EMPTY_RESPONSE: the model returned no text
- AI_INVALID_RESPONSE: the text is not JSON or does not fit the schema

No retries, no timeouts. Callers apply rewards only after a call
returned successfully, so a failure never touches progress state.

Tier 2 service: imports from providers/base (T1), prompts, usage,
schemas (T1) and errors (T1).

Usage:
    generator = ContentGenerator(provider, prompt_loader, content_config, advisor_config)
    drafts = await generator.generate_daily_quests(state.skill_levels, state.steps_completed)
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from promethee.ai.prompts import PromptLoader
from promethee.ai.providers.base import AIProvider
from promethee.ai.usage import generation_context, log_ai_call, log_ai_failure
from promethee.errors import CollaboratorError
from promethee.models import ModelConfig
from promethee.progress.rules import TOTAL_STEPS
from promethee.schemas import (
    ACTIVE_DOMAINS,
    AIChallengeScenario,
    AIPromptEvaluation,
    EnglishQuestion,
    QuestDraft,
    SkillTreeAdvice,
    UserState,
)

logger = logging.getLogger(__name__)

QUESTS_PER_DAY = 3
OPTIONS_PER_QUESTION = 3
FALLBACK_ADVICE = "Concentrez-vous sur les fondamentaux pour l'instant."

# ---------------------------------------------------------------------------
# Response schemas (google-genai Schema dicts)
# ---------------------------------------------------------------------------

_STRING = {"type": "STRING"}

QUEST_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "titre": _STRING,
            "domaine": {"type": "STRING", "enum": list(ACTIVE_DOMAINS)},
            "difficulte": {
                "type": "STRING",
                "enum": ["Facile", "Moyen", "Difficile", "Expert"],
            },
            "xp_attribuee": {"type": "INTEGER"},
            "description": _STRING,
            "conditions_de_validation": _STRING,
        },
        "required": [
            "titre",
            "domaine",
            "difficulte",
            "xp_attribuee",
            "description",
            "conditions_de_validation",
        ],
    },
}

QUIZ_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": _STRING,
            "options": {
                "type": "ARRAY",
                "items": _STRING,
                "min_items": OPTIONS_PER_QUESTION,
                "max_items": OPTIONS_PER_QUESTION,
            },
            "correctAnswer": {
                "type": "STRING",
                "description": "The exact string of the correct option",
            },
            "explanation": {
                "type": "STRING",
                "description": "Short explanation in French",
            },
        },
        "required": ["question", "options", "correctAnswer", "explanation"],
    },
}

CHALLENGE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "Titre court du défi (ex: Le Maître SQL)"},
        "context": {
            "type": "STRING",
            "description": "Mise en situation (ex: Vous travaillez sur une app E-commerce...)",
        },
        "goal": {
            "type": "STRING",
            "description": "L'objectif technique précis à faire générer par l'IA.",
        },
    },
    "required": ["title", "context", "goal"],
}

EVALUATION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "NUMBER", "description": "Score sur 100"},
        "feedback": {"type": "STRING", "description": "Analyse critique en Français"},
        "strengths": {
            "type": "ARRAY",
            "items": _STRING,
            "description": "Points forts du prompt utilisateur",
        },
        "weaknesses": {
            "type": "ARRAY",
            "items": _STRING,
            "description": "Points faibles ou manquants",
        },
        "improvedPrompt": {
            "type": "STRING",
            "description": "La version optimisée du prompt",
        },
    },
    "required": ["score", "feedback", "improvedPrompt"],
}

ADVICE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "advice": {
            "type": "STRING",
            "description": "Conseil court et stratégique (max 2 phrases)",
        },
        "suggestedNodeId": {
            "type": "STRING",
            "description": "ID du nœud suggéré (si connu, sinon laisser vide)",
        },
    },
}

_quest_drafts = TypeAdapter(list[QuestDraft])
_questions = TypeAdapter(list[EnglishQuestion])


class ContentGenerator:
    """Generates learning content through an AI provider.

    Args:
        provider: The AI provider (GeminiProvider in production).
        prompts: Loader for the prompt templates.
        content_config: Model config for quests, quizzes and challenges.
        advisor_config: Model config for the skill-tree advisor.
    """

    def __init__(
        self,
        provider: AIProvider,
        prompts: PromptLoader,
        content_config: ModelConfig,
        advisor_config: ModelConfig,
    ) -> None:
        self._provider = provider
        self._prompts = prompts
        self._content_config = content_config
        self._advisor_config = advisor_config

    # -- public calls ----------------------------------------------------

    async def generate_daily_quests(
        self, skill_levels: Mapping[str, float], steps_completed: int
    ) -> list[QuestDraft]:
        """Generates today's three quests, tuned to the curriculum position.

        Returns:
            Exactly three QuestDraft objects.

        Raises:
            CollaboratorError: On any call or parse failure, or if the
                model did not return three quests.
        """
        payload = await self._call_json(
            "quests",
            self._content_config,
            QUEST_SCHEMA,
            steps_completed=steps_completed,
            total_steps=TOTAL_STEPS,
            next_step_start=steps_completed + 1,
            next_step_end=steps_completed + 10,
            english_level=skill_levels.get("anglais", 1.0),
            web_level=skill_levels.get("webDev", 1.0),
            ai_level=skill_levels.get("aiEngineering", 1.0),
        )
        drafts = self._validate("quests", _quest_drafts, payload)
        if len(drafts) != QUESTS_PER_DAY:
            raise CollaboratorError(
                "AI_INVALID_RESPONSE",
                f"Expected {QUESTS_PER_DAY} quests, got {len(drafts)}.",
                "quests",
            )
        return drafts

    async def generate_quiz(self, english_level: float) -> list[EnglishQuestion]:
        """Generates a three-question technical English quiz."""
        payload = await self._call_json(
            "quiz", self._content_config, QUIZ_SCHEMA, level=english_level
        )
        questions = self._validate("quiz", _questions, payload)
        if not questions:
            raise CollaboratorError("AI_INVALID_RESPONSE", "The quiz has no questions.", "quiz")
        return questions

    async def generate_challenge(self, ai_level: float) -> AIChallengeScenario:
        """Generates one prompt-engineering scenario."""
        payload = await self._call_json(
            "challenge", self._content_config, CHALLENGE_SCHEMA, level=ai_level
        )
        return self._validate("challenge", TypeAdapter(AIChallengeScenario), payload)

    async def evaluate_prompt(
        self, scenario: AIChallengeScenario, user_prompt: str
    ) -> AIPromptEvaluation:
        """Scores a user's prompt for a scenario. The score is clamped to 0-100."""
        payload = await self._call_json(
            "evaluate",
            self._content_config,
            EVALUATION_SCHEMA,
            title=scenario.title,
            context=scenario.context,
            goal=scenario.goal,
            user_prompt=user_prompt,
        )
        return self._validate("evaluate", TypeAdapter(AIPromptEvaluation), payload)

    async def generate_skill_tree_advice(
        self,
        state: UserState,
        candidates: Sequence[tuple[str, str]] = (),
    ) -> SkillTreeAdvice:
        """Suggests the next skill-tree node to buy.

        An empty reply, or one without advice text, yields FALLBACK_ADVICE
        instead of an error.

        Args:
            state: Current progress state.
            candidates: (node_id, title) pairs the user could buy now.
        """
        unlocked = ", ".join(state.unlocked_nodes) or "Aucune pour l'instant"
        available = (
            "\n".join(f"- {node_id} : {title}" for node_id, title in candidates)
            or "- (aucune)"
        )
        text = await self._call(
            "advisor",
            self._advisor_config,
            ADVICE_SCHEMA,
            skills=json.dumps(state.skill_levels, ensure_ascii=False),
            unlocked=unlocked,
            build_points=state.build_points,
            skill_points=json.dumps(state.skill_points, ensure_ascii=False),
            candidates=available,
        )
        if not text.strip():
            return SkillTreeAdvice(advice=FALLBACK_ADVICE)

        advice = self._validate("advisor", TypeAdapter(SkillTreeAdvice), self._parse("advisor", text))
        if not advice.advice.strip():
            return SkillTreeAdvice(advice=FALLBACK_ADVICE, suggested_node_id=advice.suggested_node_id)
        return advice

    # -- helpers ---------------------------------------------------------

    async def _call(
        self,
        call_type: str,
        model_config: ModelConfig,
        schema: dict[str, Any],
        **variables: object,
    ) -> str:
        """Runs one provider call and returns the raw text. Logs usage."""
        system_prompt = self._prompts.render("system", model_config.provider)
        user_prompt = self._prompts.render(call_type, model_config.provider, **variables)

        start_time = time.monotonic()
        try:
            text, usage = await self._provider.complete(
                system_prompt=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                model_config=model_config,
                response_schema=schema,
            )
        except Exception as exc:
            log_ai_failure(
                model_id=model_config.model_id,
                call_type=call_type,
                code="AI_ERROR",
                latency_ms=(time.monotonic() - start_time) * 1000,
                reason=str(exc),
            )
            raise CollaboratorError(
                "AI_ERROR",
                "Le service de génération est indisponible. Réessayez plus tard.",
                call_type,
            ) from exc

        log_ai_call(
            model_id=model_config.model_id,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            latency_ms=(time.monotonic() - start_time) * 1000,
            call_type=call_type,
            response_chars=len(text),
            context=generation_context(variables),
        )
        return text

    async def _call_json(
        self,
        call_type: str,
        model_config: ModelConfig,
        schema: dict[str, Any],
        **variables: object,
    ) -> Any:
        text = await self._call(call_type, model_config, schema, **variables)
        if not text.strip():
            raise CollaboratorError(
                "AI_EMPTY_RESPONSE", "Aucun contenu n'a été généré.", call_type
            )
        return self._parse(call_type, text)

    @staticmethod
    def _parse(call_type: str, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("AI call %s returned non-JSON text: %s", call_type, exc)
            raise CollaboratorError(
                "AI_INVALID_RESPONSE", "La réponse générée est illisible.", call_type
            ) from exc

    @staticmethod
    def _validate(call_type: str, adapter: TypeAdapter, payload: Any) -> Any:
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            logger.warning(
                "AI call %s returned %d schema errors", call_type, exc.error_count()
            )
            raise CollaboratorError(
                "AI_INVALID_RESPONSE",
                "La réponse générée ne respecte pas le format attendu.",
                call_type,
            ) from exc
