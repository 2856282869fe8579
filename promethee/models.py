"""Model ID registry — single source of truth for Gemini model identifiers.

Every content-generation call resolves its model ID through this module.
The rest of the codebase imports family-name constants from here — no raw
model ID strings anywhere else.

To swap a model: change a constant below, or point CONTENT_MODEL /
ADVISOR_MODEL at another family name in the environment.
"""

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Model IDs (update when Google releases new versions)
# ---------------------------------------------------------------------------

GEMINI_FLASH_LITE: str = "gemini-2.5-flash-lite"
GEMINI_FLASH: str = "gemini-2.5-flash"
GEMINI_PRO: str = "gemini-2.5-pro"


# ---------------------------------------------------------------------------
# ModelConfig — bundles the provider-specific configuration for a call
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelConfig:
    """Provider-specific configuration for one kind of generation call.

    Tier 1 leaf — no project imports. Built by ContentGenerator from
    Settings, consumed by provider implementations.
    """

    provider: str          # "gemini"
    model_id: str          # e.g. "gemini-2.5-flash"
    thinking_budget: int = 0  # Gemini thinking tokens (0 = off)
    temperature: float = 0.7


def gemini_config(model_id: str, **overrides) -> ModelConfig:
    """Builds a Gemini ModelConfig for the given model ID.

    Args:
        model_id: Resolved model identifier (a value of MODEL_MAP).
        **overrides: Optional thinking_budget / temperature overrides.

    Returns:
        A frozen ModelConfig with provider="gemini".
    """
    return ModelConfig(provider="gemini", model_id=model_id, **overrides)


# ---------------------------------------------------------------------------
# Lookup map — env var value → actual model ID
# ---------------------------------------------------------------------------
# Keys match the constant names exactly (case-sensitive).
MODEL_MAP: dict[str, str] = {
    "GEMINI_FLASH_LITE": GEMINI_FLASH_LITE,
    "GEMINI_FLASH": GEMINI_FLASH,
    "GEMINI_PRO": GEMINI_PRO,
}
