"""Tests for promethee.ai.providers.gemini — GeminiProvider contract verification.

All tests mock the google-genai SDK client. No real API calls.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.genai import errors as genai_errors

from promethee.ai.providers.base import AIProvider, UsageInfo
from promethee.ai.providers.gemini import GeminiProvider, _build_config, _build_contents
from promethee.models import ModelConfig

_CONFIG = ModelConfig(provider="gemini", model_id="gemini-test-model")
_SYSTEM = "Tu es un maître de quêtes."
_MESSAGES: list[dict[str, str]] = [{"role": "user", "content": "Bonjour"}]
_SCHEMA = {"type": "OBJECT", "properties": {"title": {"type": "STRING"}}}


# ---------------------------------------------------------------------------
# Mock helpers
# ---------------------------------------------------------------------------


def _make_text_part(text: str | None, thought: bool = False) -> MagicMock:
    """Creates a mock Part with text content."""
    part = MagicMock()
    part.text = text
    part.thought = thought
    return part


def _make_response(
    parts: list | None = None,
    usage_metadata: MagicMock | None = None,
    empty_candidates: bool = False,
) -> MagicMock:
    """Creates a mock GenerateContentResponse."""
    response = MagicMock()
    response.usage_metadata = usage_metadata
    if empty_candidates:
        response.candidates = []
        return response

    content = MagicMock()
    content.parts = parts or []
    candidate = MagicMock()
    candidate.content = content
    response.candidates = [candidate]
    return response


def _make_usage(prompt: int = 100, completion: int = 50) -> MagicMock:
    """Creates a mock UsageMetadata."""
    usage = MagicMock()
    usage.prompt_token_count = prompt
    usage.candidates_token_count = completion
    return usage


def _make_provider() -> GeminiProvider:
    """Creates a GeminiProvider with a mocked client."""
    with patch("promethee.ai.providers.gemini.genai.Client"):
        provider = GeminiProvider(api_key="test-key")
    return provider


def _setup_response(provider: GeminiProvider, response: MagicMock) -> AsyncMock:
    """Configures the mocked client to return one response."""
    provider._client.aio.models.generate_content = AsyncMock(return_value=response)
    return provider._client.aio.models.generate_content


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestBuildContents:
    def test_role_mapping(self) -> None:
        contents = _build_contents(
            [{"role": "user", "content": "a"}, {"role": "assistant", "content": "b"}]
        )
        assert [c.role for c in contents] == ["user", "model"]
        assert contents[1].parts[0].text == "b"


class TestBuildConfig:
    def test_json_mode_with_schema(self) -> None:
        config = _build_config(_SYSTEM, _CONFIG, _SCHEMA)
        assert config.response_mime_type == "application/json"
        assert config.response_schema is not None
        assert config.system_instruction == _SYSTEM

    def test_plain_text_without_schema(self) -> None:
        config = _build_config(_SYSTEM, _CONFIG, None)
        assert config.response_mime_type is None

    def test_temperature_and_thinking_budget(self) -> None:
        model_config = ModelConfig(
            provider="gemini", model_id="m", thinking_budget=512, temperature=0.9
        )
        config = _build_config(_SYSTEM, model_config, None)
        assert config.temperature == 0.9
        assert config.thinking_config.thinking_budget == 512


# ---------------------------------------------------------------------------
# complete()
# ---------------------------------------------------------------------------


class TestComplete:
    def test_is_ai_provider(self) -> None:
        assert isinstance(_make_provider(), AIProvider)

    @pytest.mark.asyncio
    async def test_joins_text_parts(self) -> None:
        provider = _make_provider()
        response = _make_response(
            parts=[_make_text_part('{"title": '), _make_text_part('"Le Maître SQL"}')],
            usage_metadata=_make_usage(120, 30),
        )
        _setup_response(provider, response)

        text, usage = await provider.complete(
            system_prompt=_SYSTEM, messages=_MESSAGES, model_config=_CONFIG,
            response_schema=_SCHEMA,
        )
        assert text == '{"title": "Le Maître SQL"}'
        assert usage == UsageInfo(prompt_tokens=120, completion_tokens=30)

    @pytest.mark.asyncio
    async def test_passes_model_id(self) -> None:
        provider = _make_provider()
        mock_call = _setup_response(provider, _make_response(parts=[_make_text_part("x")]))
        await provider.complete(system_prompt=_SYSTEM, messages=_MESSAGES, model_config=_CONFIG)
        assert mock_call.call_args.kwargs["model"] == "gemini-test-model"

    @pytest.mark.asyncio
    async def test_skips_thinking_parts(self) -> None:
        provider = _make_provider()
        response = _make_response(
            parts=[_make_text_part("pensée", thought=True), _make_text_part("[]")]
        )
        _setup_response(provider, response)
        text, _ = await provider.complete(
            system_prompt=_SYSTEM, messages=_MESSAGES, model_config=_CONFIG
        )
        assert text == "[]"

    @pytest.mark.asyncio
    async def test_no_candidates_returns_empty_text(self, caplog) -> None:
        provider = _make_provider()
        _setup_response(provider, _make_response(empty_candidates=True))
        with caplog.at_level("WARNING", logger="promethee.ai.providers.gemini"):
            text, usage = await provider.complete(
                system_prompt=_SYSTEM, messages=_MESSAGES, model_config=_CONFIG
            )
        assert text == ""
        assert usage == UsageInfo(prompt_tokens=0, completion_tokens=0)
        assert "no candidates" in caplog.text

    @pytest.mark.asyncio
    async def test_none_text_parts_ignored(self) -> None:
        provider = _make_provider()
        _setup_response(
            provider, _make_response(parts=[_make_text_part(None), _make_text_part("ok")])
        )
        text, _ = await provider.complete(
            system_prompt=_SYSTEM, messages=_MESSAGES, model_config=_CONFIG
        )
        assert text == "ok"

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate(self) -> None:
        provider = _make_provider()
        provider._client.aio.models.generate_content = AsyncMock(
            side_effect=genai_errors.ServerError(503, {"error": {"message": "overloaded"}})
        )
        with pytest.raises(genai_errors.ServerError):
            await provider.complete(
                system_prompt=_SYSTEM, messages=_MESSAGES, model_config=_CONFIG
            )
