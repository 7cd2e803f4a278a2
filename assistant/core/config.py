import os
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_MODELS: Tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-flash-latest",
    "gemini-2.0-flash-lite",
    "gemini-2.5-flash-lite",
    "gemini-pro-latest",
)


def _split(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(v.strip() for v in value.split(",") if v.strip())


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Process configuration, read once at startup and shared read-only."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    candidates: Tuple[str, ...] = DEFAULT_MODELS
    candidate_timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "production"
    allow_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    log_prompts: bool = False

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            api_key=(env.get("GEMINI_API_KEY") or "").strip() or None,
            candidates=_split(env.get("GEMINI_MODELS")) or DEFAULT_MODELS,
            candidate_timeout=float(env.get("GEMINI_TIMEOUT_SECONDS", "30")),
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "5000")),
            environment=(env.get("APP_ENV") or env.get("NODE_ENV") or "production").strip().lower(),
            allow_origins=_split(env.get("ALLOW_ORIGINS")) or ("*",),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_prompts=_flag(env.get("LOG_LLM_PROMPTS")),
        )
