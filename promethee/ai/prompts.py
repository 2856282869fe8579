"""Prompt loading from disk with model-specific fallback chain and caching.

Loads content-generation prompt templates from the prompts/ directory.
Each prompt has a base version and an optional model-specific override:
the loader tries ``<name>_<suffix>.md`` first, falls back to
``<name>_base.md``, and caches the result keyed by (provider, name).

Templates use ``string.Template`` placeholders (``$steps_completed``);
rendering fails loudly on a missing variable.

Consumed by:
- ContentGenerator — renders one template per call
- Startup checks — validate_prompts() in main._init_content_generator
"""

from __future__ import annotations

import logging
from pathlib import Path
from string import Template

from promethee.errors import InvariantViolation

logger = logging.getLogger(__name__)

# Provider name → file suffix mapping.
# Unknown providers fall back to base files only.
_PROVIDER_SUFFIX: dict[str, str] = {
    "gemini": "gemini",
}

PROMPT_NAMES = ("system", "quests", "quiz", "challenge", "evaluate", "advisor")


class PromptLoader:
    """Loads and caches prompt templates from disk.

    Args:
        prompts_dir: Base prompts directory (e.g. PROJECT_ROOT / "prompts").
    """

    def __init__(self, prompts_dir: Path) -> None:
        self._prompts_dir = prompts_dir
        self._cache: dict[tuple[str, str], str | None] = {}

    def load(self, name: str, provider: str) -> str | None:
        """Loads a prompt template with model-specific fallback.

        Empty or whitespace-only files are treated as absent.

        Args:
            name: Prompt name (e.g. "quests").
            provider: Provider name (e.g. "gemini").

        Returns:
            The stripped template text, or None if no file exists.
        """
        cache_key = (provider, name)
        if cache_key in self._cache:
            logger.debug("Cache hit for prompt: provider=%s name=%s", provider, name)
            return self._cache[cache_key]

        logger.debug("Cache miss for prompt: provider=%s name=%s", provider, name)
        suffix = _PROVIDER_SUFFIX.get(provider)
        content = None
        if suffix is not None:
            content = self._read_prompt_file(self._prompts_dir / f"{name}_{suffix}.md")
        if content is None:
            content = self._read_prompt_file(self._prompts_dir / f"{name}_base.md")

        self._cache[cache_key] = content
        return content

    def render(self, name: str, provider: str, **variables: object) -> str:
        """Loads a template and substitutes its placeholders.

        Raises:
            InvariantViolation: If the prompt file is missing or references
                a variable not supplied.
        """
        template = self.load(name, provider)
        if template is None:
            raise InvariantViolation(f"prompts/{name}_base.md", "prompt file is missing or empty")
        try:
            return Template(template).substitute(variables)
        except (KeyError, ValueError) as exc:
            raise InvariantViolation(
                f"prompts/{name}_base.md", f"bad placeholder {exc}"
            ) from exc

    def validate_prompts(self, names: tuple[str, ...] = PROMPT_NAMES) -> list[str]:
        """Checks that every required base prompt exists and is non-empty.

        Returns:
            List of error strings (empty means valid).
        """
        errors: list[str] = []
        for name in names:
            filename = f"{name}_base.md"
            if self._read_prompt_file(self._prompts_dir / filename) is None:
                errors.append(f"missing or empty prompt file prompts/{filename}")
        return errors

    def invalidate(self) -> None:
        """Clears the in-memory prompt cache."""
        logger.debug("Prompt cache invalidated (%d entries cleared)", len(self._cache))
        self._cache.clear()

    @staticmethod
    def _read_prompt_file(path: Path) -> str | None:
        """Reads a single prompt file, returning None if absent or empty."""
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        stripped = content.strip()
        if not stripped:
            return None

        return stripped
