"""Conversation request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from chatloom.schemas.chat import ModelConfiguration
from chatloom.schemas.message import Message, MessageSender


class ConversationRead(BaseModel):
    """Conversation aggregate as loaded from and saved to storage."""

    id: str
    title: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    version: int = 1


class ConversationCreate(BaseModel):
    """Payload for starting a new conversation."""

    title: str | None = Field(default=None, max_length=255)


class ConversationUpdate(BaseModel):
    """Payload for renaming a conversation."""

    title: str = Field(min_length=1, max_length=255)


class ConversationSummary(BaseModel):
    """Conversation list row without the transcript."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    created_at: datetime
    updated_at: datetime


class ConversationsListResponse(BaseModel):
    """Paginated conversation list payload."""

    items: list[ConversationSummary]
    total: int
    limit: int
    offset: int
    has_more: bool


class AppendMessageRequest(BaseModel):
    """Payload for adding a message to a conversation.

    ``system_prompt`` semantics: omitted keeps the current system prompt, an
    empty string removes it, any other text replaces or inserts it.
    """

    content: str = Field(min_length=1)
    sender: MessageSender
    system_prompt: str | None = None
    config: ModelConfiguration | None = None


class EditMessageRequest(BaseModel):
    """Payload for rewriting a visible user message and regenerating the reply."""

    message_index: int
    new_content: str = Field(min_length=1)
    system_prompt: str | None = None
    config: ModelConfiguration | None = None
