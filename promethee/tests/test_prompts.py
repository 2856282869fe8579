"""Tests for promethee.ai.prompts — prompt loading, fallback and rendering."""

import pytest

from promethee.ai.prompts import PROMPT_NAMES, PromptLoader
from promethee.config import PROJECT_ROOT
from promethee.errors import InvariantViolation
from promethee.tests.conftest import write_prompt_file


class TestLoad:
    """PromptLoader.load — fallback chain and caching."""

    def test_base_file(self, prompts_dir) -> None:
        assert PromptLoader(prompts_dir).load("quiz", "gemini") == "Prompt quiz."

    def test_model_specific_override(self, prompts_dir) -> None:
        write_prompt_file(prompts_dir, "quiz_gemini.md", "Gemini quiz.")
        assert PromptLoader(prompts_dir).load("quiz", "gemini") == "Gemini quiz."

    def test_unknown_provider_uses_base(self, prompts_dir) -> None:
        write_prompt_file(prompts_dir, "quiz_gemini.md", "Gemini quiz.")
        assert PromptLoader(prompts_dir).load("quiz", "other") == "Prompt quiz."

    def test_whitespace_file_is_absent(self, tmp_path) -> None:
        write_prompt_file(tmp_path, "quiz_base.md", "   \n")
        assert PromptLoader(tmp_path).load("quiz", "gemini") is None

    def test_cached_until_invalidated(self, prompts_dir) -> None:
        loader = PromptLoader(prompts_dir)
        loader.load("quiz", "gemini")
        write_prompt_file(prompts_dir, "quiz_base.md", "Changed.")
        assert loader.load("quiz", "gemini") == "Prompt quiz."
        loader.invalidate()
        assert loader.load("quiz", "gemini") == "Changed."


class TestRender:
    def test_substitutes_variables(self, tmp_path) -> None:
        write_prompt_file(tmp_path, "quiz_base.md", "Niveau $level sur 10.")
        assert PromptLoader(tmp_path).render("quiz", "gemini", level=3) == "Niveau 3 sur 10."

    def test_missing_variable(self, tmp_path) -> None:
        write_prompt_file(tmp_path, "quiz_base.md", "Niveau $level.")
        with pytest.raises(InvariantViolation, match="bad placeholder"):
            PromptLoader(tmp_path).render("quiz", "gemini")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(InvariantViolation, match="missing or empty"):
            PromptLoader(tmp_path).render("quiz", "gemini")


class TestValidatePrompts:
    def test_complete_directory(self, prompts_dir) -> None:
        assert PromptLoader(prompts_dir).validate_prompts() == []

    def test_reports_missing(self, prompts_dir) -> None:
        (prompts_dir / "advisor_base.md").unlink()
        errors = PromptLoader(prompts_dir).validate_prompts()
        assert errors == ["missing or empty prompt file prompts/advisor_base.md"]

    def test_shipped_prompts_are_complete(self) -> None:
        assert PromptLoader(PROJECT_ROOT / "prompts").validate_prompts(PROMPT_NAMES) == []
