import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from assistant.api.deps import get_dispatcher, get_model_client, get_settings
from assistant.core.config import Settings
from assistant.core.errors import AllModelsExhausted, ProviderError
from assistant.services.dispatcher import FallbackDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diagnostics"])

PROBE_PROMPT = "Say hello"


@router.get("/list-models")
async def list_models(client=Depends(get_model_client), settings: Settings = Depends(get_settings)):
    logger.info("Fetching available models...")
    try:
        models = await run_in_threadpool(client.list_models)
    except ProviderError as e:
        logger.error(f"Failed to list models: {e.reason}")
        body = {"success": False, "error": "Unable to list models."}
        if settings.is_development:
            body["details"] = e.reason
        return JSONResponse(status_code=500, content=body)
    return {"success": True, "models": models, "count": len(models)}


@router.get("/test-api")
async def test_api(dispatcher: FallbackDispatcher = Depends(get_dispatcher)):
    try:
        result = await dispatcher.dispatch(PROBE_PROMPT)
    except AllModelsExhausted:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "All models failed. Please check your quota and billing."},
        )
    return {
        "success": True,
        "reply": result.text,
        "model": result.model,
        "message": f"API is working with {result.model}",
    }
