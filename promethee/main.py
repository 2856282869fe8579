"""FastAPI application — entry point, middleware, and health endpoint.

Creates the Promethee tracker API with:
- API versioning via router prefix (/api/v1/)
- CORS middleware (origins from settings)
- Request logging middleware (raw ASGI)
- Global exception handlers (HTTPException, validation, collaborator and
  configuration errors, catch-all)
- Health endpoint

Startup loads the static content (buildings, skill trees) and fails fast
with InvariantViolation if it is malformed. A missing GOOGLE_API_KEY only
disables the AI-backed endpoints.

Run with: uvicorn promethee.main:app --reload

Tier 3 orchestration module: imports from config (Tier 2), deps (Tier 2),
schemas (Tier 1), errors (Tier 1).
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from promethee.config import get_settings
from promethee.errors import CollaboratorError, ConfigurationError
from promethee.schemas import ApiError, ApiResponse

logger = logging.getLogger("promethee")


# ---------------------------------------------------------------------------
# Request logging middleware (raw ASGI)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """Logs method, path, status code, and duration for every request.

    Uses raw ASGI to avoid response body buffering. Does NOT log request
    or response bodies (user prompts stay out of the logs).
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Wraps the ASGI call to measure timing and capture status code."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "%s %s %d %.1fms", method, path, status_code, duration_ms
            )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wraps HTTPException in ApiResponse envelope.

    If the detail is already an ApiResponse dict (from deps.py or a route),
    returns it directly. Otherwise wraps in a generic error.
    """
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="HTTP_ERROR", message=str(exc.detail)),
        ).model_dump(),
    )


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Wraps Pydantic validation errors in ApiResponse envelope.

    Returns a human-readable summary without leaking internal details.
    """
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = " -> ".join(str(part) for part in first.get("loc", []))
        msg = first.get("msg", "Validation error")
        detail = f"{loc}: {msg}" if loc else msg
    else:
        detail = "Request validation failed."

    return JSONResponse(
        status_code=422,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="VALIDATION_ERROR", message=detail),
        ).model_dump(),
    )


def _collaborator_error_response(request: Request, exc: CollaboratorError) -> JSONResponse:
    """A content-generation call failed. Progress was not touched."""
    logger.warning(
        "Content generation failed on %s %s: %s (%s)",
        request.method,
        request.url.path,
        exc.code,
        exc.call_type,
    )
    return JSONResponse(
        status_code=502,
        content=ApiResponse(
            ok=False,
            error=ApiError(code=exc.code, message=exc.message),
        ).model_dump(),
    )


def _configuration_error_response(request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="AI_NOT_CONFIGURED", message=exc.message),
        ).model_dump(),
    )


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Catches all unhandled exceptions — never leaks internals to client.

    Logs the full traceback server-side. Returns a generic 500 response.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=500,
        content=ApiResponse(
            ok=False,
            error=ApiError(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred.",
            ),
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def _init_progress() -> None:
    """Loads static content and creates the progress service singleton.

    Raises InvariantViolation on malformed buildings or skill trees — the
    app must not start on broken static data.
    """
    from promethee.api import deps
    from promethee.config import PROJECT_ROOT
    from promethee.content.loader import load_content
    from promethee.progress.service import ProgressService

    settings = get_settings()
    content = load_content(PROJECT_ROOT / "content")
    repository = deps.create_repository(settings)
    deps._progress_service = ProgressService(repository, content)
    logger.info("Progress service ready: storage=%s", settings.storage_backend)


def _init_content_generator() -> None:
    """Creates the prompt loader, provider and content generator singletons.

    Logs warnings/errors but never prevents startup — step tracking, quest
    completion and the skill tree work without AI. When the generator
    cannot be built, the reason is kept for the 503 AI_NOT_CONFIGURED
    responses.
    """
    from promethee.ai.content import ContentGenerator
    from promethee.ai.prompts import PromptLoader
    from promethee.api import deps
    from promethee.config import PROJECT_ROOT
    from promethee.models import gemini_config

    settings = get_settings()

    prompt_loader = PromptLoader(PROJECT_ROOT / "prompts")
    deps._prompt_loader = prompt_loader

    prompt_errors = prompt_loader.validate_prompts()
    if prompt_errors:
        for error in prompt_errors:
            logger.error("Prompt check: %s", error)
        deps._ai_unavailable_reason = "Content generation prompts are missing."
        return

    content_config = gemini_config(settings.content_model)
    advisor_config = gemini_config(settings.advisor_model, temperature=0.9)
    try:
        provider = deps.create_provider(content_config, settings)
    except ConfigurationError as exc:
        logger.warning("%s AI features will be unavailable.", exc.message)
        deps._ai_unavailable_reason = exc.message
        return

    deps._content_generator = ContentGenerator(
        provider, prompt_loader, content_config, advisor_config
    )
    logger.info(
        "Content generator initialized: provider=%s, model=%s, advisor=%s",
        content_config.provider,
        content_config.model_id,
        advisor_config.model_id,
    )


def create_app() -> FastAPI:
    """Creates and configures the FastAPI application."""
    settings = get_settings()

    # Configure logging level
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="Promethee",
        description="Gamified learning tracker with AI-generated daily quests",
        version="0.1.0",
    )

    # -- Middleware (order matters: last added = first executed) --

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_middleware(RequestLoggingMiddleware)

    # -- Exception handlers --
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(CollaboratorError, _collaborator_error_response)
    application.add_exception_handler(ConfigurationError, _configuration_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    # -- Routers --
    _register_routes(application)

    # -- Services (content first: it can abort startup) --
    _init_progress()
    _init_content_generator()

    return application


def _register_routes(application: FastAPI) -> None:
    """Registers all API routers on the application."""
    from fastapi import APIRouter

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    from promethee.api.progress import router as progress_router

    v1.include_router(progress_router, prefix="/progress", tags=["progress"])

    application.include_router(v1)


app = create_app()
