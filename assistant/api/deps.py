from fastapi import Request

from assistant.core.config import Settings
from assistant.core.errors import ConfigurationError
from assistant.services.dispatcher import FallbackDispatcher
from assistant.services.gemini_service import ModelClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_model_client(request: Request) -> ModelClient:
    client = request.app.state.model_client
    if client is None:
        raise ConfigurationError("model client unavailable: missing provider credential")
    return client


def get_dispatcher(request: Request) -> FallbackDispatcher:
    dispatcher = request.app.state.dispatcher
    if dispatcher is None:
        raise ConfigurationError("dispatcher unavailable: missing provider credential")
    return dispatcher
