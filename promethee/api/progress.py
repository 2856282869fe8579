"""Progress API routes — the tracker's screens as endpoints.

Reads (state, quests, skill tree, town, history) and the actions that
change progress: step increments, quest generation and completion, quiz
and prompt-challenge rewards, skill-tree purchases, advisor hints.

All responses use the ApiResponse envelope. Payloads use the camelCase
keys of the stored documents. Rejected actions (completing a finished
quest, buying a locked node, a superseded quest generation) answer
ok=true with applied=false; they are not errors.

AI-backed endpoints depend on get_content_generator, which answers 503
AI_NOT_CONFIGURED when no generator could be built. CollaboratorError
raised by a generator call is turned into a 502 by the handler in
main.py; no reward is applied in that case.

Tier 3 orchestration module: imports from deps (Tier 2), progress
service (Tier 3), ai/content (Tier 2), schemas (Tier 1).
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from promethee.ai.content import ContentGenerator
from promethee.api.deps import get_content_generator, get_progress_service
from promethee.progress.buildings import BuildingStatus
from promethee.progress.history import HistoryPeriod, HistorySummary
from promethee.progress.rules import skill_key_for
from promethee.progress.service import ProgressService
from promethee.progress.skill_tree import SkillTreeCatalog, can_unlock, is_unlocked
from promethee.schemas import (
    AIChallengeScenario,
    ApiError,
    ApiResponse,
    Quest,
    UserState,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies (API-boundary types, local to this module)
# ---------------------------------------------------------------------------


class QuizResultRequest(BaseModel):
    """Request body for POST /quiz/result."""

    correct_count: int = Field(ge=0)


class EvaluatePromptRequest(BaseModel):
    """Request body for POST /challenge/evaluate."""

    scenario: AIChallengeScenario
    prompt: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def _state_json(state: UserState) -> dict[str, Any]:
    return state.model_dump(mode="json", by_alias=True)


def _quests_json(quests: list[Quest]) -> list[dict[str, Any]]:
    return [quest.model_dump(mode="json", by_alias=True) for quest in quests]


def _ok(data: dict[str, Any]) -> dict[str, Any]:
    return ApiResponse(ok=True, data=data).model_dump()


def _skill_tree_view(catalog: SkillTreeCatalog, state: UserState) -> dict[str, Any]:
    """Trees with per-node unlocked/available flags and the matching balances."""
    trees = []
    for tree in catalog.trees:
        key = skill_key_for(tree.domain)
        branches = []
        for branch in tree.branches:
            nodes = []
            for node in branch.nodes:
                node_json = node.model_dump(mode="json", by_alias=True)
                node_json["unlocked"] = is_unlocked(state, node.id)
                node_json["available"] = can_unlock(state, node, key)
                nodes.append(node_json)
            branches.append(
                {
                    "id": branch.id,
                    "name": branch.name,
                    "description": branch.description,
                    "nodes": nodes,
                }
            )
        trees.append(
            {
                "domain": tree.domain,
                "skillKey": key,
                "skillLevel": state.skill_levels[key],
                "skillPoints": state.skill_points[key],
                "branches": branches,
            }
        )
    return {"buildPoints": state.build_points, "trees": trees}


def _town_view(statuses: list[BuildingStatus]) -> list[dict[str, Any]]:
    view = []
    for status in statuses:
        resolution = status.resolution
        view.append(
            {
                "domaine": status.building.domaine,
                "metric": status.metric,
                "currentTier": resolution.current_tier.model_dump(mode="json"),
                "nextTier": (
                    resolution.next_tier.model_dump(mode="json")
                    if resolution.next_tier is not None
                    else None
                ),
                "progress": resolution.progress_fraction,
                "remaining": resolution.remaining,
            }
        )
    return view


def _history_view(summary: HistorySummary) -> dict[str, Any]:
    return {
        "period": summary.period,
        "records": [r.model_dump(mode="json", by_alias=True) for r in summary.records],
        "totalXp": summary.total_xp,
        "totalQuests": summary.total_quests,
        "totalSteps": summary.total_steps,
    }


# ---------------------------------------------------------------------------
# State and steps
# ---------------------------------------------------------------------------


@router.get("/state")
async def get_state(
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    """Returns the progress document and the current streak."""
    state = await service.get_state()
    return _ok({"state": _state_json(state), "streak": await service.streak(state)})


@router.post("/steps")
async def increment_step(
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    """Counts one more FreeCodeCamp step."""
    state = await service.increment_step()
    return _ok({"state": _state_json(state), "streak": await service.streak(state)})


# ---------------------------------------------------------------------------
# Quests
# ---------------------------------------------------------------------------


@router.get("/quests")
async def list_quests(
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    return _ok({"quests": _quests_json(await service.get_quests())})


@router.post("/quests/generate")
async def generate_quests(
    service: ProgressService = Depends(get_progress_service),
    generator: ContentGenerator = Depends(get_content_generator),
) -> dict[str, Any]:
    """Replaces the active quests with three new ones.

    A generation overtaken by a newer one is discarded: the response then
    carries applied=false and the quests currently stored.
    """

    async def _drafts(state: UserState):
        return await generator.generate_daily_quests(state.skill_levels, state.steps_completed)

    quests = await service.regenerate_quests(_drafts)
    if quests is None:
        return _ok({"quests": _quests_json(await service.get_quests()), "applied": False})
    return _ok({"quests": _quests_json(quests), "applied": True})


@router.post("/quests/{quest_id}/complete")
async def complete_quest(
    quest_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    """Completes a quest and applies its reward. Repeats are not applied."""
    result = await service.complete_quest(quest_id)
    return _ok(
        {
            "state": _state_json(result.state),
            "quests": _quests_json(result.quests),
            "applied": result.applied,
        }
    )


# ---------------------------------------------------------------------------
# English quiz
# ---------------------------------------------------------------------------


@router.post("/quiz")
async def generate_quiz(
    service: ProgressService = Depends(get_progress_service),
    generator: ContentGenerator = Depends(get_content_generator),
) -> dict[str, Any]:
    state = await service.get_state()
    questions = await generator.generate_quiz(state.skill_levels["anglais"])
    return _ok(
        {"questions": [q.model_dump(mode="json", by_alias=True) for q in questions]}
    )


@router.post("/quiz/result")
async def submit_quiz_result(
    body: QuizResultRequest,
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    """Applies a finished quiz. Zero correct answers changes nothing."""
    state = await service.apply_quiz_result(body.correct_count)
    return _ok({"state": _state_json(state), "applied": body.correct_count > 0})


# ---------------------------------------------------------------------------
# Prompt challenge
# ---------------------------------------------------------------------------


@router.post("/challenge")
async def generate_challenge(
    service: ProgressService = Depends(get_progress_service),
    generator: ContentGenerator = Depends(get_content_generator),
) -> dict[str, Any]:
    state = await service.get_state()
    scenario = await generator.generate_challenge(state.skill_levels["aiEngineering"])
    return _ok({"scenario": scenario.model_dump(mode="json", by_alias=True)})


@router.post("/challenge/evaluate")
async def evaluate_challenge(
    body: EvaluatePromptRequest,
    service: ProgressService = Depends(get_progress_service),
    generator: ContentGenerator = Depends(get_content_generator),
) -> dict[str, Any]:
    """Scores the user's prompt, then rewards the score."""
    evaluation = await generator.evaluate_prompt(body.scenario, body.prompt)
    state = await service.apply_challenge_score(evaluation.score)
    return _ok(
        {
            "evaluation": evaluation.model_dump(mode="json", by_alias=True),
            "state": _state_json(state),
        }
    )


# ---------------------------------------------------------------------------
# Skill tree
# ---------------------------------------------------------------------------


@router.get("/skill-tree")
async def get_skill_tree(
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    state = await service.get_state()
    return _ok(_skill_tree_view(service.catalog, state))


@router.post("/skill-tree/{node_id}/unlock")
async def unlock_node(
    node_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    """Buys a node if its parent is unlocked and the balance covers it."""
    if node_id not in service.catalog:
        raise HTTPException(
            status_code=404,
            detail=ApiResponse(
                ok=False,
                error=ApiError(code="NODE_NOT_FOUND", message=f"Unknown skill node {node_id!r}."),
            ).model_dump(),
        )
    result = await service.unlock_node(node_id)
    return _ok({"state": _state_json(result.state), "applied": result.applied})


@router.post("/skill-tree/advice")
async def skill_tree_advice(
    service: ProgressService = Depends(get_progress_service),
    generator: ContentGenerator = Depends(get_content_generator),
) -> dict[str, Any]:
    state = await service.get_state()
    candidates = [
        (entry.node.id, entry.node.title)
        for entry in service.catalog
        if can_unlock(state, entry.node, entry.skill_key)
    ]
    advice = await generator.generate_skill_tree_advice(state, candidates)
    return _ok({"advice": advice.model_dump(mode="json", by_alias=True)})


# ---------------------------------------------------------------------------
# Town and history
# ---------------------------------------------------------------------------


@router.get("/town")
async def get_town(
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    return _ok({"buildings": _town_view(await service.town())})


@router.get("/history")
async def get_history(
    period: HistoryPeriod = Query(default="week"),
    service: ProgressService = Depends(get_progress_service),
) -> dict[str, Any]:
    summary = await service.history(period)
    return _ok({**_history_view(summary), "streak": await service.streak()})
