"""Whole-document load/save for conversation aggregates."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from chatloom.models.conversation import Conversation
from chatloom.schemas.conversation import ConversationRead
from chatloom.schemas.message import Message

logger = logging.getLogger(__name__)


class ConcurrentModificationError(RuntimeError):
    """Raised when the stored conversation changed after it was loaded."""

    def __init__(self, conversation_id: str, expected_version: int) -> None:
        super().__init__(
            f"Conversation {conversation_id} was modified concurrently (expected version {expected_version})."
        )
        self.conversation_id = conversation_id
        self.expected_version = expected_version


class ConversationDeletedError(RuntimeError):
    """Raised when a loaded conversation no longer exists at save time."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation {conversation_id} was deleted before it could be saved.")
        self.conversation_id = conversation_id


def load_conversation(db: Session, conversation_id: str) -> ConversationRead | None:
    """Load one conversation with its full transcript."""

    row = db.scalar(select(Conversation).where(Conversation.id == conversation_id))
    if row is None:
        return None
    return to_conversation_read(row)


def save_conversation(db: Session, conversation: ConversationRead, *, create: bool = False) -> ConversationRead:
    """Persist the whole aggregate in one write.

    The update only applies while the stored version still equals the loaded
    one. A missing row is inserted only when ``create`` is set; otherwise it
    raises ``ConversationDeletedError``.
    """

    messages = _with_message_ids(conversation.messages)
    messages_json = [message.model_dump(mode="json") for message in messages]
    updated_at = conversation.updated_at or datetime.now(timezone.utc)

    result = db.execute(
        update(Conversation)
        .where(Conversation.id == conversation.id, Conversation.version == conversation.version)
        .values(
            title=conversation.title,
            messages_json=messages_json,
            updated_at=updated_at,
            version=Conversation.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        exists = db.scalar(select(Conversation.id).where(Conversation.id == conversation.id))
        if exists is not None:
            db.rollback()
            logger.warning(
                "conversations.save_conflict conversation_id=%s expected_version=%d",
                conversation.id,
                conversation.version,
            )
            raise ConcurrentModificationError(conversation.id, conversation.version)
        if not create:
            db.rollback()
            logger.warning("conversations.save_missing conversation_id=%s", conversation.id)
            raise ConversationDeletedError(conversation.id)
        db.add(
            Conversation(
                id=conversation.id,
                title=conversation.title,
                messages_json=messages_json,
                created_at=conversation.created_at,
                updated_at=updated_at,
                version=conversation.version + 1,
            )
        )
    db.commit()
    return conversation.model_copy(
        update={
            "messages": messages,
            "updated_at": updated_at,
            "version": conversation.version + 1,
        }
    )


def to_conversation_read(row: Conversation) -> ConversationRead:
    return ConversationRead(
        id=row.id,
        title=row.title,
        messages=[Message.model_validate(item) for item in row.messages_json or []],
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


def _with_message_ids(messages: list[Message]) -> list[Message]:
    return [
        message if message.id else message.model_copy(update={"id": uuid4().hex})
        for message in messages
    ]
