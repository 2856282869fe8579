"""Google Gemini AI provider using the google-genai SDK.

Implements the AIProvider contract for Google's Gemini model family:
non-streaming JSON-mode calls with a response schema, thinking part
filtering, and usage extraction. One attempt per call; SDK errors
(google.genai.errors.ClientError / ServerError) propagate unchanged.

Tier 2 service — imports from base.py (Tier 1) + google-genai SDK.
"""

import logging
from typing import Any

from google import genai
from google.genai import types

from promethee.ai.providers.base import AIProvider, ModelConfig, UsageInfo

logger = logging.getLogger(__name__)


def _build_contents(messages: list[dict[str, str]]) -> list[types.Content]:
    """Converts provider-neutral message dicts to Gemini Content objects.

    Role mapping: "user" → "user", "assistant" → "model".
    """
    role_map = {"user": "user", "assistant": "model"}
    contents = []
    for msg in messages:
        role = role_map.get(msg["role"], msg["role"])
        contents.append(
            types.Content(
                parts=[types.Part(text=msg["content"])],
                role=role,
            )
        )
    return contents


def _build_config(
    system_prompt: str,
    model_config: ModelConfig,
    response_schema: dict[str, Any] | None,
) -> types.GenerateContentConfig:
    """Builds the GenerateContentConfig for a Gemini API call."""
    config = types.GenerateContentConfig(
        system_instruction=system_prompt,
        temperature=model_config.temperature,
        thinking_config=types.ThinkingConfig(
            thinking_budget=model_config.thinking_budget,
        ),
    )

    if response_schema is not None:
        config.response_mime_type = "application/json"
        config.response_schema = response_schema

    return config


class GeminiProvider(AIProvider):
    """Gemini AI provider using the google-genai SDK.

    Args:
        api_key: Google API key for Gemini access.
    """

    def __init__(self, api_key: str) -> None:
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(
                retry_options=types.HttpRetryOptions(attempts=1),
            ),
        )

    async def complete(
        self,
        *,
        system_prompt: str,
        messages: list[dict[str, str]],
        model_config: ModelConfig,
        response_schema: dict[str, Any] | None = None,
    ) -> tuple[str, UsageInfo]:
        """Returns the full response text and usage info.

        Thinking parts are skipped. A reply with no candidates (e.g. a
        safety block) returns empty text; callers decide what that means.

        Args:
            system_prompt: The system instruction.
            messages: Conversation as {"role": ..., "content": ...} dicts.
            model_config: Provider-specific configuration (model ID, thinking budget).
            response_schema: Optional JSON response schema.

        Returns:
            Tuple of (full response text, token usage information).
        """
        response = await self._client.aio.models.generate_content(
            model=model_config.model_id,
            contents=_build_contents(messages),
            config=_build_config(system_prompt, model_config, response_schema),
        )

        # Extract text from all non-thinking parts
        parts_text = []
        if response.candidates:
            for candidate in response.candidates:
                if candidate.content is None or candidate.content.parts is None:
                    continue
                for part in candidate.content.parts:
                    if getattr(part, "thought", False):
                        continue
                    if part.text is not None:
                        parts_text.append(part.text)
        else:
            logger.warning("Gemini returned no candidates for %s", model_config.model_id)

        prompt_tokens = 0
        completion_tokens = 0
        if response.usage_metadata is not None:
            prompt_tokens = response.usage_metadata.prompt_token_count or 0
            completion_tokens = response.usage_metadata.candidates_token_count or 0

        return "".join(parts_text), UsageInfo(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )
