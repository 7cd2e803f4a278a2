import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from assistant.core.errors import AllModelsExhausted, ProviderError
from assistant.services.gemini_service import ModelClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptResult:
    model: str
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DispatchResult:
    text: str
    model: str
    attempts: List[AttemptResult] = field(default_factory=list)


async def attempt(client: ModelClient, model_id: str, prompt: str, timeout: Optional[float] = None) -> AttemptResult:
    """Run one candidate and fold any failure into the result instead of raising."""
    try:
        text = await asyncio.wait_for(client.generate(model_id, prompt), timeout=timeout)
    except asyncio.TimeoutError:
        return AttemptResult(model=model_id, error=f"timed out after {timeout}s")
    except ProviderError as e:
        return AttemptResult(model=model_id, error=e.reason)
    except Exception as e:
        return AttemptResult(model=model_id, error=f"{type(e).__name__}: {e}")
    return AttemptResult(model=model_id, text=text)


class FallbackDispatcher:
    """
    Tries each candidate model in declaration order and returns the first success.

    Calls are strictly sequential: a candidate is only attempted after the
    previous one failed. Holds no per-request state.
    """

    def __init__(self, client: ModelClient, candidates: Sequence[str], timeout: Optional[float] = None):
        self.client = client
        self.candidates: Tuple[str, ...] = tuple(candidates)
        self.timeout = timeout

    async def dispatch(self, prompt: str) -> DispatchResult:
        attempts: List[AttemptResult] = []
        for model_id in self.candidates:
            result = await attempt(self.client, model_id, prompt, self.timeout)
            attempts.append(result)
            if result.ok:
                logger.info(f"Response generated | model={model_id} attempts={len(attempts)}")
                return DispatchResult(text=result.text, model=model_id, attempts=attempts)
            logger.warning(f"Model failed, trying next | model={model_id} reason={result.error}")

        logger.error(f"All models failed | candidates={len(self.candidates)}")
        raise AllModelsExhausted(attempts)
