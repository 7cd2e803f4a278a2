import logging
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assistant.api.routers.chat import router as chat_router
from assistant.api.routers.diagnostics import router as diagnostics_router
from assistant.core.config import Settings
from assistant.core.errors import AllModelsExhausted, ConfigurationError, ValidationError
from assistant.schemas.message import ChatReply
from assistant.services.dispatcher import FallbackDispatcher
from assistant.services.gemini_service import GeminiService, ModelClient

INVALID_MESSAGE_REPLY = "Invalid message format."
CONFIG_ERROR_REPLY = "Server configuration error. Please contact admin."
UNAVAILABLE_REPLY = "AI service temporarily unavailable. Please try again."

logger = logging.getLogger(__name__)


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(formatter)
        root.addHandler(handler)
    # Align common framework loggers to the chosen level without adding handlers
    for lname in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "starlette"):
        logging.getLogger(lname).setLevel(level)
    logger.info(f"Logging configured | level={logging.getLevelName(level)}")


def _reply(status_code: int, reply: str, error: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ChatReply(reply=reply, error=error).model_dump(exclude_none=True))


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError):
        logger.info(f"Rejected chat request: {exc}")
        return _reply(400, INVALID_MESSAGE_REPLY)

    @app.exception_handler(ConfigurationError)
    async def on_configuration_error(request: Request, exc: ConfigurationError):
        logger.error(f"Server configuration error: {exc}")
        return _reply(500, CONFIG_ERROR_REPLY)

    @app.exception_handler(AllModelsExhausted)
    async def on_models_exhausted(request: Request, exc: AllModelsExhausted):
        settings: Settings = request.app.state.settings
        error = exc.last_error if settings.is_development else None
        return _reply(500, UNAVAILABLE_REPLY, error=error)


def create_app(settings: Optional[Settings] = None, model_client: Optional[ModelClient] = None) -> FastAPI:
    """
    Build the application. The model client and dispatcher are created once here
    and shared by every request; pass ``model_client`` to substitute the provider.
    """
    if settings is None:
        load_dotenv()
        settings = Settings.from_env()
    configure_logging(settings.log_level)

    logger.info(f"API Key loaded: {'yes' if settings.has_credentials else 'no'}")
    if model_client is None and settings.has_credentials:
        model_client = GeminiService(settings.api_key, log_prompts=settings.log_prompts)
    if model_client is None:
        logger.warning("GEMINI_API_KEY not set. Chat requests will return a configuration error.")

    app = FastAPI(title="Gemini AI Chat Server")
    app.state.settings = settings
    app.state.model_client = model_client
    app.state.dispatcher = (
        FallbackDispatcher(model_client, settings.candidates, timeout=settings.candidate_timeout)
        if model_client is not None
        else None
    )

    origins = list(settings.allow_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    app.include_router(chat_router)
    app.include_router(diagnostics_router)

    @app.get("/")
    async def root():
        return {"status": "Server is running", "message": "Gemini AI Chat Server"}

    @app.get("/health")
    async def health():
        logger.debug("Health check endpoint hit")
        return {"status": "ok"}

    return app


def run() -> None:
    load_dotenv()
    settings = Settings.from_env()
    app = create_app(settings)
    logger.info(f"Backend running on http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
