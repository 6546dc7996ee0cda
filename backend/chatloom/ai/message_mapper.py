"""Conversion between stored transcript messages and AI backend messages.

Role inference lives here and nowhere else. Callers must never rebuild roles
from display strings such as ``"user: hello"``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from chatloom.schemas.message import AIMessage, Message, MessageRole

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTEXT_MESSAGES = 10


@dataclass(slots=True)
class MessageValidation:
    """Outcome of ``validate_messages``."""

    valid: bool
    issues: list[str] = field(default_factory=list)


def resolve_role(message: Message) -> MessageRole:
    """Return the AI-facing role, preferring an explicit role over the sender."""

    if message.role:
        return message.role
    if message.sender == "ai":
        return "assistant"
    if message.sender == "user":
        return "user"
    logger.warning(
        "message_mapper.unknown_sender message_id=%s sender=%r role=%r; defaulting to user",
        message.id,
        message.sender,
        message.role,
    )
    return "user"


def is_system_message(message: Message) -> bool:
    return message.role == "system"


def visible_messages(messages: Sequence[Message]) -> list[Message]:
    """Messages shown in the transcript, i.e. everything except the system prompt."""

    return [message for message in messages if not is_system_message(message)]


def visible_index_to_absolute_index(messages: Sequence[Message], visible_index: int) -> int | None:
    """Translate an index into the visible transcript to an index into ``messages``.

    Returns ``None`` when ``visible_index`` is negative or past the last
    visible message.
    """

    if visible_index < 0:
        return None
    visible_count = 0
    for position, message in enumerate(messages):
        if is_system_message(message):
            continue
        if visible_count == visible_index:
            return position
        visible_count += 1
    return None


def to_ai_messages(messages: Sequence[Message]) -> list[AIMessage]:
    """Map stored messages to backend messages with trimmed content."""

    return [AIMessage(role=resolve_role(message), content=message.content.strip()) for message in messages]


def prepare_ai_context(
    messages: Sequence[Message],
    max_context_messages: int = DEFAULT_MAX_CONTEXT_MESSAGES,
) -> list[AIMessage]:
    """Keep the last ``max_context_messages`` messages in chronological order and map them.

    The cutoff is a plain message count. A system prompt at index 0 of a long
    history falls outside the window and is not sent.
    """

    window = list(messages[-max_context_messages:]) if max_context_messages > 0 else []
    ai_messages = to_ai_messages(window)
    logger.debug(
        "message_mapper.context_prepared total_messages=%d context_messages=%d has_system=%s",
        len(messages),
        len(window),
        any(message.role == "system" for message in ai_messages),
    )
    return ai_messages


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_system_message(content: str) -> Message:
    # sender stays "ai" so older transcript renderers keep working
    return Message(sender="ai", role="system", content=content.strip(), timestamp=_now())


def create_user_message(content: str) -> Message:
    return Message(sender="user", role="user", content=content.strip(), timestamp=_now())


def create_assistant_message(content: str) -> Message:
    return Message(sender="ai", role="assistant", content=content.strip(), timestamp=_now())


def validate_messages(messages: Sequence[Message]) -> MessageValidation:
    """Report empty content, missing sender/role and missing timestamps by index."""

    issues: list[str] = []
    for index, message in enumerate(messages):
        if not (message.content or "").strip():
            issues.append(f"Message at index {index} has empty content")
        if not message.sender and not message.role:
            issues.append(f"Message at index {index} has no sender or role")
        if message.timestamp is None:
            issues.append(f"Message at index {index} has no timestamp")
    return MessageValidation(valid=not issues, issues=issues)
