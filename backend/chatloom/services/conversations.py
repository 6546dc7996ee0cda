"""Conversation CRUD plus the append/edit transitions that drive AI replies."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatloom.ai.message_mapper import (
    create_assistant_message,
    create_system_message,
    create_user_message,
    is_system_message,
    visible_index_to_absolute_index,
    visible_messages,
)
from chatloom.models.conversation import Conversation
from chatloom.schemas.chat import ChatRequest, ModelConfiguration
from chatloom.schemas.conversation import (
    ConversationRead,
    ConversationsListResponse,
    ConversationSummary,
)
from chatloom.schemas.message import Message
from chatloom.schemas.results import ErrorCode, ServiceResult
from chatloom.services.chat import ChatService
from chatloom.services.repository import (
    ConcurrentModificationError,
    ConversationDeletedError,
    load_conversation,
    save_conversation,
    to_conversation_read,
)

logger = logging.getLogger(__name__)

AI_ERROR_PREFIX = "❌ **AI Error**: "
UNEXPECTED_ERROR_TEXT = "❌ **Unexpected Error**: Failed to generate AI response. Please try again."


def create_conversation(db: Session, title: str | None = None) -> ConversationRead:
    """Start an empty conversation."""

    clean_title = (title or "").strip() or f"New Conversation - {date.today().isoformat()}"
    now = datetime.now(timezone.utc)
    row = Conversation(title=clean_title, messages_json=[], created_at=now, updated_at=now, version=1)
    db.add(row)
    db.commit()
    db.refresh(row)
    return to_conversation_read(row)


def get_conversation(db: Session, conversation_id: str) -> ConversationRead | None:
    return load_conversation(db, conversation_id)


def list_conversations(db: Session, *, limit: int = 20, offset: int = 0) -> ConversationsListResponse:
    """Return conversation summaries, most recently updated first."""

    total = int(db.scalar(select(func.count()).select_from(Conversation)) or 0)
    rows = db.scalars(
        select(Conversation)
        .order_by(Conversation.updated_at.desc(), Conversation.id.asc())
        .limit(limit)
        .offset(offset)
    ).all()
    return ConversationsListResponse(
        items=[ConversationSummary.model_validate(row) for row in rows],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(rows) < total,
    )


def rename_conversation(db: Session, conversation_id: str, title: str) -> ConversationRead | None:
    """Change the title; raises ``ConcurrentModificationError`` on a lost update."""

    conversation = load_conversation(db, conversation_id)
    if conversation is None:
        return None
    try:
        return save_conversation(
            db,
            conversation.model_copy(update={"title": title.strip(), "updated_at": datetime.now(timezone.utc)}),
        )
    except ConversationDeletedError:
        return None


def delete_conversation(db: Session, conversation_id: str) -> bool:
    result = db.execute(delete(Conversation).where(Conversation.id == conversation_id))
    db.commit()
    return result.rowcount > 0


def apply_system_prompt(messages: Sequence[Message], system_prompt: str | None) -> list[Message]:
    """Insert, replace or remove the system prompt, keeping it unique and first.

    ``None`` leaves the transcript unchanged, blank text removes the system
    prompt, anything else replaces the existing one in place or inserts a new
    one at index 0.
    """

    updated = list(messages)
    if system_prompt is None:
        return updated
    if not system_prompt.strip():
        return [message for message in updated if not is_system_message(message)]

    existing_index = next(
        (position for position, message in enumerate(updated) if is_system_message(message)),
        None,
    )
    if existing_index is None:
        return [create_system_message(system_prompt), *updated]

    replacement = create_system_message(system_prompt)
    replacement = replacement.model_copy(update={"id": updated[existing_index].id})
    updated[existing_index] = replacement
    # Legacy documents may carry stray extra system messages; keep only the first.
    return [
        message
        for position, message in enumerate(updated)
        if position == existing_index or not is_system_message(message)
    ]


def append_message(
    db: Session,
    conversation_id: str,
    *,
    content: str,
    sender: str,
    chat_service: ChatService,
    system_prompt: str | None = None,
    model_config: ModelConfiguration | None = None,
) -> ServiceResult[ConversationRead]:
    """Append a message and, for user messages, the assistant reply or a visible error."""

    trimmed = (content or "").strip()
    if not trimmed:
        return ServiceResult.fail(ErrorCode.INVALID_MESSAGE, "Message content cannot be empty.")
    if sender not in ("user", "ai"):
        return ServiceResult.fail(ErrorCode.INVALID_SENDER, f"Unsupported sender: {sender!r}.")

    conversation = load_conversation(db, conversation_id)
    if conversation is None:
        return ServiceResult.fail(ErrorCode.CONVERSATION_NOT_FOUND, "Conversation not found")

    logger.info(
        "conversations.append conversation_id=%s sender=%s message_length=%d has_system_prompt=%s",
        conversation_id,
        sender,
        len(trimmed),
        system_prompt is not None,
    )
    messages = apply_system_prompt(conversation.messages, system_prompt)
    if sender == "user":
        messages.append(create_user_message(trimmed))
        # The full updated history is the only input; the new message is already its last entry.
        messages.append(_generate_reply(conversation_id, messages, model_config, chat_service))
    else:
        messages.append(create_assistant_message(trimmed))

    return _save(db, conversation, messages)


def edit_message(
    db: Session,
    conversation_id: str,
    *,
    message_index: int,
    new_content: str,
    chat_service: ChatService,
    system_prompt: str | None = None,
    model_config: ModelConfiguration | None = None,
) -> ServiceResult[ConversationRead]:
    """Rewrite a visible user message, drop everything after it and regenerate the reply."""

    trimmed = (new_content or "").strip()
    if not trimmed:
        return ServiceResult.fail(ErrorCode.INVALID_MESSAGE, "Message content cannot be empty.")

    conversation = load_conversation(db, conversation_id)
    if conversation is None:
        return ServiceResult.fail(ErrorCode.CONVERSATION_NOT_FOUND, "Conversation not found")

    shown = visible_messages(conversation.messages)
    if message_index < 0 or message_index >= len(shown):
        return ServiceResult.fail(
            ErrorCode.INVALID_MESSAGE_INDEX,
            "Invalid message index",
            details={"message_index": message_index, "visible_count": len(shown)},
        )
    if shown[message_index].sender != "user":
        return ServiceResult.fail(ErrorCode.MESSAGE_NOT_EDITABLE, "Can only edit user messages")

    logger.info(
        "conversations.edit conversation_id=%s message_index=%d new_content_length=%d has_system_prompt=%s",
        conversation_id,
        message_index,
        len(trimmed),
        system_prompt is not None,
    )
    messages = apply_system_prompt(conversation.messages, system_prompt)
    absolute_index = visible_index_to_absolute_index(messages, message_index)
    if absolute_index is None:
        return ServiceResult.fail(ErrorCode.INVALID_MESSAGE_INDEX, "Message not found")

    edited = messages[absolute_index].model_copy(
        update={"content": trimmed, "timestamp": datetime.now(timezone.utc)}
    )
    messages = [*messages[:absolute_index], edited]
    messages.append(_generate_reply(conversation_id, messages, model_config, chat_service))

    return _save(db, conversation, messages)


def _generate_reply(
    conversation_id: str,
    messages: list[Message],
    model_config: ModelConfiguration | None,
    chat_service: ChatService,
) -> Message:
    try:
        result = chat_service.generate_response(ChatRequest(messages=list(messages), config=model_config))
    except Exception:  # noqa: BLE001
        logger.exception("conversations.generation_crashed conversation_id=%s", conversation_id)
        return create_assistant_message(UNEXPECTED_ERROR_TEXT)

    if result.success and result.data is not None:
        logger.info(
            "conversations.reply_generated conversation_id=%s response_length=%d model=%s provider=%s",
            conversation_id,
            len(result.data.content),
            result.data.model,
            result.data.provider,
        )
        return create_assistant_message(result.data.content)

    error_message = result.error.message if result.error else "Unknown AI service error"
    logger.error(
        "conversations.generation_failed conversation_id=%s code=%s message=%s",
        conversation_id,
        result.error.code.value if result.error else None,
        error_message,
    )
    return create_assistant_message(f"{AI_ERROR_PREFIX}{error_message}")


def _save(
    db: Session,
    conversation: ConversationRead,
    messages: list[Message],
) -> ServiceResult[ConversationRead]:
    updated = conversation.model_copy(
        update={"messages": messages, "updated_at": datetime.now(timezone.utc)}
    )
    try:
        saved = save_conversation(db, updated)
    except ConcurrentModificationError as exc:
        return ServiceResult.fail(ErrorCode.CONCURRENT_MODIFICATION, str(exc))
    except ConversationDeletedError as exc:
        return ServiceResult.fail(ErrorCode.CONVERSATION_NOT_FOUND, str(exc))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("conversations.save_failed conversation_id=%s", conversation.id)
        return ServiceResult.fail(ErrorCode.PERSISTENCE_ERROR, "Failed to save conversation")

    logger.info(
        "conversations.saved conversation_id=%s total_messages=%d version=%d",
        saved.id,
        len(saved.messages),
        saved.version,
    )
    return ServiceResult.ok(saved)
