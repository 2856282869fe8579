"""Shared FastAPI dependencies — progress service and content generator injection.

Module-level singletons, set at startup by main._init_progress() and
main._init_content_generator(). Route handlers access them via FastAPI's
Depends() system — never by importing the singletons directly — so tests
swap them with app.dependency_overrides.

Tier 2 service module: imports from hooks/* (Tier 2), hooks/interfaces
(Tier 1), schemas (Tier 1), ai/* (Tier 2), models (Tier 1), config,
errors (Tier 1).

Usage:
    from promethee.api.deps import get_progress_service

    @router.get("/something")
    async def do_thing(
        service: ProgressService = Depends(get_progress_service),
    ): ...
"""

import logging

from fastapi import HTTPException

from promethee.ai.content import ContentGenerator
from promethee.ai.prompts import PromptLoader
from promethee.ai.providers.base import AIProvider
from promethee.config import Settings, require_google_api_key
from promethee.hooks.interfaces import ProgressRepository
from promethee.models import ModelConfig
from promethee.progress.service import ProgressService
from promethee.schemas import ApiError, ApiResponse

logger = logging.getLogger("promethee")

# ---------------------------------------------------------------------------
# Service singletons — set at startup
# ---------------------------------------------------------------------------

_progress_service: ProgressService | None = None

# AI singletons — set by _init_content_generator() in main.py at startup
_prompt_loader: PromptLoader | None = None
_content_generator: ContentGenerator | None = None
_ai_unavailable_reason: str = "Content generation is not yet available. Server is starting up."


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_progress_service() -> ProgressService:
    """Returns the progress service singleton.

    Raises HTTPException(503) if startup has not created it yet.
    """
    if _progress_service is None:
        raise HTTPException(
            status_code=503,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="SERVICE_UNAVAILABLE",
                    message="Progress service is not yet available. Server is starting up.",
                ),
            ).model_dump(),
        )
    return _progress_service


def get_content_generator() -> ContentGenerator:
    """Returns the content generator singleton.

    Raises HTTPException(503) with AI_NOT_CONFIGURED when the generator
    could not be built (missing GOOGLE_API_KEY, missing prompts). Step
    tracking, quest completion and the skill tree keep working without it.
    """
    if _content_generator is None:
        raise HTTPException(
            status_code=503,
            detail=ApiResponse(
                ok=False,
                error=ApiError(code="AI_NOT_CONFIGURED", message=_ai_unavailable_reason),
            ).model_dump(),
        )
    return _content_generator


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def create_provider(model_config: ModelConfig, settings: Settings) -> AIProvider:
    """Routes a ModelConfig to the correct concrete provider instance.

    Args:
        model_config: The resolved model configuration.
        settings: Application settings with API keys.

    Returns:
        A concrete AIProvider instance.

    Raises:
        ConfigurationError: If GOOGLE_API_KEY is not set.
        ValueError: If the provider name is not recognized.
    """
    # Local import to avoid pulling the SDK at module load time.
    if model_config.provider == "gemini":
        from promethee.ai.providers.gemini import GeminiProvider

        return GeminiProvider(api_key=require_google_api_key(settings))

    raise ValueError(
        f"Unknown provider: {model_config.provider!r}. Expected 'gemini'."
    )


def create_repository(settings: Settings) -> ProgressRepository:
    """Builds the repository selected by STORAGE_BACKEND."""
    if settings.storage_backend == "memory":
        from promethee.hooks.memory import InMemoryProgressRepository

        logger.warning("STORAGE_BACKEND=memory: progress is lost on restart.")
        return InMemoryProgressRepository()

    from promethee.hooks.storage import JsonFileProgressRepository

    return JsonFileProgressRepository(settings.data_dir)
