import json

import pytest
import requests

from assistant.ui.session import (
    CONNECTION_ERROR_TEXT,
    MAX_INPUT_CHARS,
    NO_RESPONSE_TEXT,
    ChatApiClient,
    ChatClientError,
    ChatSession,
    CooldownError,
)
from assistant.ui.storage import HISTORY_KEY, THEME_KEY, MemoryStore


class FakeApi:
    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.sent = []

    def send(self, message):
        self.sent.append(message)
        reply = self.replies.pop(0) if self.replies else {"reply": "ok", "model": "m1"}
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClock:
    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


def test_send_appends_user_and_ai_messages():
    api = FakeApi([{"reply": "Hi there", "model": "m2"}])
    session = ChatSession(api, MemoryStore(), clock=FakeClock(0.0))

    reply = session.send("  hello  ")

    assert api.sent == ["hello"]
    assert [(m.role, m.text) for m in session.messages] == [("user", "hello"), ("ai", "Hi there")]
    assert reply.text == "Hi there"
    assert not session.loading


def test_second_send_inside_cooldown_is_rejected_without_network_call():
    api = FakeApi()
    session = ChatSession(api, MemoryStore(), cooldown_ms=3000, clock=FakeClock(10.0, 10.5))

    session.send("first")
    with pytest.raises(CooldownError) as exc_info:
        session.send("second")

    assert api.sent == ["first"]
    assert exc_info.value.remaining_ms == 2500
    assert len(session.messages) == 2


def test_send_allowed_after_cooldown():
    api = FakeApi()
    session = ChatSession(api, MemoryStore(), cooldown_ms=3000, clock=FakeClock(10.0, 13.0))
    session.send("first")
    session.send("second")
    assert api.sent == ["first", "second"]


def test_blank_input_is_ignored():
    api = FakeApi()
    session = ChatSession(api, MemoryStore(), clock=FakeClock())
    assert session.send("   ") is None
    assert api.sent == []
    assert session.messages == []


def test_send_uses_and_clears_draft():
    api = FakeApi()
    session = ChatSession(api, MemoryStore(), clock=FakeClock(0.0))
    session.draft = "from draft"
    session.send()
    assert api.sent == ["from draft"]
    assert session.draft == ""


def test_long_input_is_truncated():
    api = FakeApi()
    session = ChatSession(api, MemoryStore(), clock=FakeClock(0.0))
    session.send("x" * (MAX_INPUT_CHARS + 20))
    assert len(api.sent[0]) == MAX_INPUT_CHARS


def test_network_failure_becomes_error_message():
    api = FakeApi([ChatClientError("connection refused")])
    session = ChatSession(api, MemoryStore(), clock=FakeClock(0.0))

    reply = session.send("hello")

    assert reply.role == "ai"
    assert reply.text == CONNECTION_ERROR_TEXT
    assert not session.loading


def test_empty_reply_gets_placeholder():
    session = ChatSession(FakeApi([{"reply": ""}]), MemoryStore(), clock=FakeClock(0.0))
    assert session.send("hello").text == NO_RESPONSE_TEXT


def test_history_is_persisted_and_restored():
    store = MemoryStore()
    ChatSession(FakeApi([{"reply": "pong"}]), store, clock=FakeClock(0.0)).send("ping")

    saved = json.loads(store.load(HISTORY_KEY))
    assert [m["text"] for m in saved] == ["ping", "pong"]

    restored = ChatSession(FakeApi(), store)
    assert [(m.role, m.text) for m in restored.messages] == [("user", "ping"), ("ai", "pong")]


def test_corrupt_history_is_discarded():
    store = MemoryStore({HISTORY_KEY: "{not json"})
    assert ChatSession(FakeApi(), store).messages == []


def test_clear_empties_memory_and_storage():
    store = MemoryStore()
    session = ChatSession(FakeApi(), store, clock=FakeClock(0.0))
    session.toggle_theme()
    session.send("hello")

    session.clear()

    assert session.messages == []
    assert store.load(HISTORY_KEY) is None
    assert store.load(THEME_KEY) == "dark"


def test_theme_toggles_and_persists():
    store = MemoryStore()
    session = ChatSession(FakeApi(), store)
    assert session.theme == "light"
    assert session.toggle_theme() == "dark"
    assert ChatSession(FakeApi(), store).theme == "dark"
    assert session.toggle_theme() == "light"
    assert store.load(THEME_KEY) == "light"


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeHttpSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


def test_api_client_posts_message():
    http = FakeHttpSession(FakeResponse(payload={"reply": "hi", "model": "m1"}))
    api = ChatApiClient("http://localhost:5000/", session=http)

    assert api.send("hello") == {"reply": "hi", "model": "m1"}
    assert http.requests == [("POST", "http://localhost:5000/api/chat", {"json": {"message": "hello"}})]


@pytest.mark.parametrize(
    "http",
    [
        FakeHttpSession(error=requests.ConnectionError("refused")),
        FakeHttpSession(FakeResponse(status_code=500, payload={"reply": "AI service temporarily unavailable."})),
        FakeHttpSession(FakeResponse(payload=None)),
    ],
)
def test_api_client_errors_are_chat_client_errors(http):
    with pytest.raises(ChatClientError):
        ChatApiClient(session=http).send("hello")


def test_api_client_list_models():
    http = FakeHttpSession(FakeResponse(payload={"success": True, "models": ["models/a"], "count": 1}))
    assert ChatApiClient(session=http).list_models() == ["models/a"]
