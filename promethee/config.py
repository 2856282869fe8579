"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

Model name env vars (e.g. CONTENT_MODEL=GEMINI_FLASH) are resolved to
actual API model IDs at load time via MODEL_MAP from promethee.models.

Usage:
    from promethee.config import get_settings
    settings = get_settings()
    print(settings.content_model)  # "gemini-2.5-flash"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from promethee.errors import ConfigurationError
from promethee.models import MODEL_MAP

# Only load .env from the project root — don't traverse parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

_STORAGE_BACKENDS = ("file", "memory")


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the Promethee tracker.

    All fields have sensible defaults for local development except the
    Google API key, which has no default and is checked when the AI
    provider is built.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # AI
    content_model: str
    advisor_model: str
    google_api_key: str

    # Persistence
    storage_backend: str
    data_dir: Path


def _resolve_model(env_var: str, value: str) -> str:
    """Resolves a family-name string to an actual model ID via MODEL_MAP.

    Args:
        env_var: Name of the environment variable (for error messages).
        value: The family-name value from the environment (e.g. "GEMINI_FLASH").

    Returns:
        The resolved model ID string.

    Raises:
        ValueError: If the value doesn't match any key in MODEL_MAP.
    """
    if value in MODEL_MAP:
        return MODEL_MAP[value]
    valid = ", ".join(sorted(MODEL_MAP.keys()))
    raise ValueError(
        f"Invalid value for {env_var}: {value!r}. "
        f"Valid options: {valid}"
    )


def _resolve_storage_backend(value: str) -> str:
    """Validates STORAGE_BACKEND against the known repository kinds."""
    if value in _STORAGE_BACKENDS:
        return value
    raise ValueError(
        f"Invalid value for STORAGE_BACKEND: {value!r}. "
        f"Valid options: {', '.join(_STORAGE_BACKENDS)}"
    )


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
        ),
        # AI
        content_model=_resolve_model(
            "CONTENT_MODEL",
            os.environ.get("CONTENT_MODEL", "GEMINI_FLASH"),
        ),
        advisor_model=_resolve_model(
            "ADVISOR_MODEL",
            os.environ.get("ADVISOR_MODEL", "GEMINI_FLASH_LITE"),
        ),
        google_api_key=os.environ.get("GOOGLE_API_KEY", "").strip(),
        # Persistence
        storage_backend=_resolve_storage_backend(
            os.environ.get("STORAGE_BACKEND", "file")
        ),
        data_dir=Path(os.environ.get("DATA_DIR", ".promethee")),
    )


def require_google_api_key(settings: Settings) -> str:
    """Returns the Google API key or raises if it is not configured.

    Args:
        settings: The application Settings.

    Returns:
        The non-empty API key.

    Raises:
        ConfigurationError: If GOOGLE_API_KEY is empty.
    """
    if not settings.google_api_key:
        raise ConfigurationError(
            "GOOGLE_API_KEY",
            "GOOGLE_API_KEY is not set. Quest generation, quizzes and the "
            "prompt dojo are unavailable; step tracking still works.",
        )
    return settings.google_api_key


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
