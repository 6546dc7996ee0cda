"""Message schemas for stored transcripts and backend wire payloads."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

MessageSender = Literal["user", "ai"]
MessageRole = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """One transcript entry embedded in a conversation document.

    ``role`` is optional because legacy records only carry ``sender``; the
    message mapper derives the role from the sender in that case.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    sender: MessageSender | None = None
    role: MessageRole | None = None
    content: str = ""
    timestamp: datetime | None = None


class AIMessage(BaseModel):
    """Message shape sent to the AI backend."""

    role: MessageRole
    content: str
