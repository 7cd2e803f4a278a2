import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError as PydanticValidationError

from assistant.api.deps import get_dispatcher, get_settings
from assistant.core.config import Settings
from assistant.core.errors import ValidationError
from assistant.schemas.message import ChatReply, ChatRequest
from assistant.services.dispatcher import FallbackDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


async def _parse_chat_request(request: Request) -> ChatRequest:
    try:
        payload = await request.json()
        return ChatRequest.model_validate(payload)
    except (ValueError, PydanticValidationError) as e:
        raise ValidationError(str(e)) from e


@router.post("/chat", response_model=ChatReply, response_model_exclude_none=True)
@router.post("/api/chat", response_model=ChatReply, response_model_exclude_none=True)
async def chat_endpoint(
    request: Request,
    dispatcher: FallbackDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    req = await _parse_chat_request(request)
    if settings.log_prompts:
        logger.debug(f"Received message: {req.message}")
    else:
        logger.debug(f"Received message | len={len(req.message)}")

    result = await dispatcher.dispatch(req.message)
    return ChatReply(reply=result.text, model=result.model)


@router.options("/chat")
@router.options("/api/chat")
async def chat_preflight():
    return Response(status_code=200)
