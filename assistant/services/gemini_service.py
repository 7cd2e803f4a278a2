import logging
from typing import Any, List, Optional, Protocol

import google.generativeai as genai

from assistant.core.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

SAFETY_BLOCKED = "blocked by safety policies"


class ModelClient(Protocol):
    async def generate(self, model_id: str, prompt: str) -> str:
        ...


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    name = getattr(value, "name", None)
    return str(name if name is not None else value).upper()


def extract_text(model_id: str, resp: Any) -> str:
    """
    Pull the generated text out of a generate_content response.

    Raises ProviderError when the response was blocked or carries no text.
    """
    # resp.text raises when no valid Part exists (e.g. safety blocked)
    try:
        text_attr = getattr(resp, "text", None)
        if isinstance(text_attr, str) and text_attr.strip():
            return text_attr
    except Exception as e_text:
        logger.debug(f"Gemini .text accessor unavailable | model={model_id} err={e_text}")

    pf = getattr(resp, "prompt_feedback", None)
    if pf is not None and getattr(pf, "block_reason", None):
        logger.warning(f"Gemini prompt blocked | model={model_id} reason={_enum_name(pf.block_reason)}")
        raise ProviderError(model_id, SAFETY_BLOCKED)

    cand = getattr(resp, "candidates", None)
    if cand:
        first = cand[0]
        parts = getattr(getattr(first, "content", None), "parts", None) or []
        # Parts can be text, inline_data or function_call; take only text
        text = "".join(t for t in (getattr(p, "text", None) for p in parts) if isinstance(t, str)).strip()
        if text:
            return text
        if _enum_name(getattr(first, "finish_reason", None)) == "SAFETY":
            logger.warning(f"Gemini response blocked by safety | model={model_id}")
            raise ProviderError(model_id, SAFETY_BLOCKED)

    raise ProviderError(model_id, "empty response")


class GeminiService:
    """Single-shot generation against one named Gemini model."""

    def __init__(self, api_key: Optional[str], log_prompts: bool = False):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        self.log_prompts = log_prompts
        genai.configure(api_key=api_key)
        logger.info("Gemini client configured")

    async def generate(self, model_id: str, prompt: str) -> str:
        if not model_id or not prompt:
            raise ProviderError(model_id or "<none>", "model id and prompt must be non-empty")

        if self.log_prompts:
            logger.debug(f"Gemini request | model={model_id} prompt={prompt}")
        else:
            logger.debug(f"Gemini request | model={model_id} prompt_len={len(prompt)}")

        try:
            model = genai.GenerativeModel(model_id)
            resp = await model.generate_content_async(prompt)
        except Exception as e:
            raise ProviderError(model_id, str(e) or type(e).__name__) from e

        text = extract_text(model_id, resp)
        logger.debug(f"Gemini response preview={text[:200]}")
        return text

    def list_models(self) -> List[str]:
        """Names of the models that support generateContent for this key."""
        try:
            return [
                m.name
                for m in genai.list_models()
                if "generateContent" in (getattr(m, "supported_generation_methods", None) or [])
            ]
        except Exception as e:
            raise ProviderError("list_models", str(e) or type(e).__name__) from e
