from typing import Literal, Optional

from pydantic import BaseModel, StrictStr, field_validator


class Message(BaseModel):
    role: Literal["user", "ai"]
    text: str
    time: str


class ChatRequest(BaseModel):
    message: StrictStr

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class ChatReply(BaseModel):
    reply: str
    model: Optional[str] = None
    # Only populated in development mode
    error: Optional[str] = None
