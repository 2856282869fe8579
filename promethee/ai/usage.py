"""Structured usage logging for content-generation calls.

One line per generator call: token counts and latency for cost analysis,
the size of the reply, and the numeric context the content was tuned to
(curriculum position, skill level, build points). Failed calls get a
WARNING line carrying the error code instead. Machine-parseable via the
``extra`` dict — standard JSON log formatters pick these up automatically.

Logger name: ``promethee.ai.usage``

Tier 2 service: imports only stdlib.
"""

import logging
from collections.abc import Mapping

logger = logging.getLogger("promethee.ai.usage")


def generation_context(variables: Mapping[str, object]) -> dict[str, int | float]:
    """Keeps the numeric prompt variables (levels, step counts, balances)."""
    return {
        name: value
        for name, value in variables.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


def log_ai_call(
    *,
    model_id: str,
    prompt_tokens: int,
    completion_tokens: int,
    latency_ms: float,
    call_type: str,
    response_chars: int,
    context: Mapping[str, int | float] | None = None,
) -> None:
    """Emits a structured INFO log for a completed generator call.

    Args:
        model_id: The model identifier used for this call.
        prompt_tokens: Number of input tokens consumed.
        completion_tokens: Number of output tokens generated.
        latency_ms: Wall-clock duration of the AI call in milliseconds.
        call_type: Which generator call this was ("quests", "quiz",
            "challenge", "evaluate", "advisor").
        response_chars: Length of the returned text. 0 flags an empty reply.
        context: Numeric inputs of the prompt, e.g. ``steps_completed`` for
            quests or ``level`` for a quiz.
    """
    context = dict(context or {})
    logger.info(
        "AI call: %s %s tokens_in=%d tokens_out=%d chars=%d latency=%.0fms %s",
        call_type,
        model_id,
        prompt_tokens,
        completion_tokens,
        response_chars,
        latency_ms,
        " ".join(f"{name}={value}" for name, value in context.items()),
        extra={
            "model_id": model_id,
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "latency_ms": latency_ms,
            "call_type": call_type,
            "response_chars": response_chars,
            "generation_context": context,
        },
    )


def log_ai_failure(
    *,
    model_id: str,
    call_type: str,
    code: str,
    latency_ms: float,
    reason: str,
) -> None:
    """Emits a structured WARNING log for a generator call that failed.

    Args:
        code: The CollaboratorError code ("AI_ERROR", ...).
        reason: Short description of the underlying failure.
    """
    logger.warning(
        "AI call failed: %s %s code=%s latency=%.0fms: %s",
        call_type,
        model_id,
        code,
        latency_ms,
        reason,
        extra={
            "model_id": model_id,
            "call_type": call_type,
            "error_code": code,
            "latency_ms": latency_ms,
        },
    )
