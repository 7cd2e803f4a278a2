import json
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from assistant.schemas.message import Message
from assistant.ui.storage import HISTORY_KEY, THEME_KEY, KeyValueStore

logger = logging.getLogger(__name__)

COOLDOWN_MS = 3000
MAX_INPUT_CHARS = 500
NO_RESPONSE_TEXT = "No response from AI"
CONNECTION_ERROR_TEXT = "Error connecting to AI. Try again later."


class ChatClientError(Exception):
    pass


class CooldownError(Exception):
    def __init__(self, remaining_ms: int):
        super().__init__(f"Please wait {remaining_ms} ms before sending again.")
        self.remaining_ms = remaining_ms


class ChatApiClient:
    def __init__(self, base_url: str = "http://localhost:5000", session: Optional[requests.Session] = None, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
            logger.debug(f"Chat API response | url={url} status={r.status_code}")
            r.raise_for_status()
            return r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Chat API request failed: {e}")
            raise ChatClientError(str(e)) from e

    def send(self, message: str) -> Dict[str, Any]:
        return self._request("POST", "/api/chat", json={"message": message})

    def list_models(self) -> List[str]:
        return self._request("GET", "/list-models").get("models", [])


def _now() -> str:
    return datetime.now().strftime("%H:%M:%S")


class ChatSession:
    """
    Client-side conversation state: history, draft, theme and send cooldown.

    History and theme are persisted to ``store`` under fixed keys and restored
    on construction. The cooldown only guards against rapid repeated sends
    from this client; the server does not enforce it.
    """

    def __init__(
        self,
        api: ChatApiClient,
        store: KeyValueStore,
        cooldown_ms: int = COOLDOWN_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.store = store
        self.cooldown_ms = cooldown_ms
        self.clock = clock
        self.draft = ""
        self.loading = False
        self.last_sent_ms: Optional[float] = None
        self.messages: List[Message] = self._restore_history()
        self.theme = "dark" if store.load(THEME_KEY) == "dark" else "light"

    def _restore_history(self) -> List[Message]:
        raw = self.store.load(HISTORY_KEY)
        if not raw:
            return []
        try:
            return [Message.model_validate(m) for m in json.loads(raw)]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.warning(f"Discarding unreadable chat history: {e}")
            return []

    def _persist_history(self) -> None:
        self.store.save(HISTORY_KEY, json.dumps([m.model_dump() for m in self.messages]))

    def _append(self, role: str, text: str) -> Message:
        msg = Message(role=role, text=text, time=_now())
        self.messages.append(msg)
        return msg

    def send(self, text: Optional[str] = None) -> Optional[Message]:
        content = (self.draft if text is None else text).strip()[:MAX_INPUT_CHARS]
        if not content or self.loading:
            return None

        now_ms = self.clock() * 1000
        if self.last_sent_ms is not None and now_ms - self.last_sent_ms < self.cooldown_ms:
            raise CooldownError(int(self.cooldown_ms - (now_ms - self.last_sent_ms)))
        self.last_sent_ms = now_ms

        self._append("user", content)
        self.draft = ""
        self.loading = True
        try:
            data = self.api.send(content)
            text = data.get("reply") if isinstance(data, dict) else None
            reply = self._append("ai", text or NO_RESPONSE_TEXT)
        except ChatClientError:
            reply = self._append("ai", CONNECTION_ERROR_TEXT)
        finally:
            self.loading = False
        self._persist_history()
        return reply

    def clear(self) -> None:
        self.messages = []
        self.store.clear(HISTORY_KEY)

    def toggle_theme(self) -> str:
        self.theme = "light" if self.theme == "dark" else "dark"
        self.store.save(THEME_KEY, self.theme)
        return self.theme
