import asyncio
from typing import Dict, List, Optional, Union

import pytest
from fastapi.testclient import TestClient

from assistant.core.config import Settings
from assistant.core.errors import ProviderError
from assistant.main import create_app


class Slow:
    """Outcome that never finishes within a short per-candidate timeout."""

    def __init__(self, seconds: float = 5.0):
        self.seconds = seconds


Outcome = Union[str, Exception, Slow]


class FakeModelClient:
    def __init__(self, outcomes: Optional[Dict[str, Outcome]] = None, models: Optional[List[str]] = None):
        self.outcomes = dict(outcomes or {})
        self.models = models or []
        self.calls: List[str] = []
        self.prompts: List[str] = []

    async def generate(self, model_id: str, prompt: str) -> str:
        self.calls.append(model_id)
        self.prompts.append(prompt)
        outcome = self.outcomes.get(model_id, ProviderError(model_id, "404 model not found"))
        if isinstance(outcome, Slow):
            await asyncio.sleep(outcome.seconds)
            return "too late"
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def list_models(self) -> List[str]:
        if isinstance(self.models, Exception):
            raise self.models
        return list(self.models)


@pytest.fixture
def fake_client() -> FakeModelClient:
    return FakeModelClient({"m1": ProviderError("m1", "429 quota exceeded"), "m2": "hello"})


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", candidates=("m1", "m2"), candidate_timeout=1.0)


@pytest.fixture
def client(settings: Settings, fake_client: FakeModelClient) -> TestClient:
    return TestClient(create_app(settings, model_client=fake_client))
