import logging
from datetime import datetime
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

HISTORY_KEY = "chat-history"
THEME_KEY = "chat-theme"

Base = declarative_base()


class KeyValueStore(Protocol):
    def load(self, key: str) -> Optional[str]:
        ...

    def save(self, key: str, value: str) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def save(self, key: str, value: str) -> None:
        self.data[key] = value

    def clear(self, key: str) -> None:
        self.data.pop(key, None)


class UIState(Base):
    __tablename__ = "ui_state"
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SqlStore:
    """Durable client-side store backed by a local SQLite file."""

    def __init__(self, url: str = "sqlite:///assistant_ui.db"):
        self.engine = create_engine(url, echo=False)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine)
        logger.debug(f"UI state store ready | url={url}")

    def load(self, key: str) -> Optional[str]:
        with self.Session() as session:
            row = session.get(UIState, key)
            return row.value if row is not None else None

    def save(self, key: str, value: str) -> None:
        with self.Session.begin() as session:
            row = session.get(UIState, key)
            if row is None:
                session.add(UIState(key=key, value=value))
            else:
                row.value = value

    def clear(self, key: str) -> None:
        with self.Session.begin() as session:
            row = session.get(UIState, key)
            if row is not None:
                session.delete(row)
