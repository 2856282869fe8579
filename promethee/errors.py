"""Error taxonomy — the three failure kinds the platform distinguishes.

- ConfigurationError: a required credential is missing. Fatal to AI-backed
  features, harmless to the progress state machine.
- CollaboratorError: a content-generation call failed or returned content
  that could not be parsed. State is left untouched.
- InvariantViolation: static content (buildings, skill trees) is malformed.
  Raised at load time so the app never starts on broken data.

Rejected actions (completing a completed quest, buying a locked node) are
not errors and never raise.

Tier 1 leaf module: stdlib only.
"""


class ConfigurationError(Exception):
    """A required setting is absent or unusable.

    Attributes:
        setting: Name of the environment variable at fault.
        message: Human-readable description.
    """

    def __init__(self, setting: str, message: str) -> None:
        self.setting = setting
        self.message = message
        super().__init__(message)


class CollaboratorError(Exception):
    """A call to the content-generation service failed.

    Attributes:
        code: Uppercase error code ("AI_ERROR", "AI_EMPTY_RESPONSE",
            "AI_INVALID_RESPONSE"). Surfaced in the API envelope.
        message: Human-readable description, safe to show to the user.
        call_type: Which generator call failed ("quests", "quiz", ...).
    """

    def __init__(self, code: str, message: str, call_type: str = "") -> None:
        self.code = code
        self.message = message
        self.call_type = call_type
        super().__init__(message)


class InvariantViolation(Exception):
    """Static content breaks a structural rule.

    Attributes:
        source: The file or definition that was being validated.
        message: Which rule was broken.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")
