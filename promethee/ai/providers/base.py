"""Base AI provider interface.

Defines the contract every content-generation provider (Gemini, Mock) must
satisfy: one non-streaming completion that returns JSON text constrained
by an optional response schema.

Tier 1 leaf — imports only stdlib and promethee.models (also Tier 1).
No schemas, no config, no framework imports.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from promethee.models import ModelConfig


@dataclass(frozen=True)
class UsageInfo:
    """Token usage from a completed AI call. Logged per call for cost tracking."""

    prompt_tokens: int
    completion_tokens: int


class AIProvider(ABC):
    """Abstract base for AI model providers.

    Concrete implementations (GeminiProvider, MockProvider) implement
    complete() to talk to their respective backends. Calls are single-shot:
    providers do not retry, and SDK errors propagate to the caller.
    """

    @abstractmethod
    async def complete(
        self,
        *,
        system_prompt: str,
        messages: list[dict[str, str]],
        model_config: ModelConfig,
        response_schema: dict[str, Any] | None = None,
    ) -> tuple[str, UsageInfo]:
        """Returns the full response text and usage info.

        Args:
            system_prompt: The system instruction (mentor persona).
            messages: Conversation as {"role": ..., "content": ...} dicts.
            model_config: Provider-specific configuration (model ID, etc.).
            response_schema: Optional JSON response schema. When given, the
                provider asks the model for JSON matching it.

        Returns:
            Tuple of (full response text, token usage information).
        """
