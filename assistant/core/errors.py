from typing import List, Optional, Sequence


class AssistantError(Exception):
    pass


class ValidationError(AssistantError):
    """Inbound chat message is missing, not a string, or blank."""


class ConfigurationError(AssistantError):
    """Provider credential is missing; chat cannot be served."""


class ProviderError(AssistantError):
    """A single generation call against one model failed."""

    def __init__(self, model: str, reason: str):
        super().__init__(f"{model}: {reason}")
        self.model = model
        self.reason = reason


class AllModelsExhausted(AssistantError):
    """Every candidate model failed for one dispatch."""

    def __init__(self, attempts: Optional[Sequence] = None):
        self.attempts: List = list(attempts or [])
        super().__init__(f"All models failed ({len(self.attempts)} attempted)")

    @property
    def last_error(self) -> Optional[str]:
        if not self.attempts:
            return None
        return self.attempts[-1].error
