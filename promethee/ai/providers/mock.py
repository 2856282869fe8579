"""Mock AI provider for testing and development.

Deterministic, zero-cost AIProvider implementation that returns
configurable canned responses. Used by the test suite (via the
conftest mock_provider fixture) and as the reference implementation
of the AIProvider contract.

Tier 2 service — imports only from base.py (Tier 1).
"""

from typing import Any

from promethee.ai.providers.base import AIProvider, ModelConfig, UsageInfo

_DEFAULT_RESPONSES = ["{}"]
_DEFAULT_USAGE = UsageInfo(prompt_tokens=10, completion_tokens=5)


class MockProvider(AIProvider):
    """Deterministic AI provider for testing.

    Each complete() call returns the next canned response; the last one
    repeats once the list is exhausted. Every call is recorded in
    ``calls`` so tests can inspect prompts and schemas.

    Args:
        responses: Response texts, one per call. Defaults to ``["{}"]``.
        usage: Token usage returned by complete(). Defaults to 10/5.
        error: If set, complete() raises this immediately.
    """

    def __init__(
        self,
        responses: list[str] | None = None,
        usage: UsageInfo | None = None,
        error: Exception | None = None,
    ) -> None:
        self.responses = responses if responses is not None else list(_DEFAULT_RESPONSES)
        self.usage = usage or _DEFAULT_USAGE
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        *,
        system_prompt: str,
        messages: list[dict[str, str]],
        model_config: ModelConfig,
        response_schema: dict[str, Any] | None = None,
    ) -> tuple[str, UsageInfo]:
        """Returns the next canned response and the configured usage info.

        Raises configured error immediately if error is set.
        """
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": messages,
                "model_config": model_config,
                "response_schema": response_schema,
            }
        )
        if self.error is not None:
            raise self.error

        if not self.responses:
            return "", self.usage
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        return self.responses[index], self.usage
