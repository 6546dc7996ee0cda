"""Conversation ORM model."""

from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chatloom.models.base import Base, DocumentIdMixin, TimestampMixin


class Conversation(Base, DocumentIdMixin, TimestampMixin):
    """Conversation document; the transcript is stored inline as one JSON array."""

    __tablename__ = "conversations"

    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled Conversation")
    messages_json: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
