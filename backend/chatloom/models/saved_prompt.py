"""Saved prompt ORM models."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatloom.models.base import Base, DocumentIdMixin, IdMixin, TimestampMixin


class SavedPrompt(Base, DocumentIdMixin, TimestampMixin):
    """Named system prompt template with version history."""

    __tablename__ = "saved_prompts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    versions: Mapped[list["SavedPromptVersion"]] = relationship(
        back_populates="prompt",
        cascade="all, delete-orphan",
        order_by="SavedPromptVersion.id",
    )


class SavedPromptVersion(Base, IdMixin):
    """One immutable text revision of a saved prompt."""

    __tablename__ = "saved_prompt_versions"

    prompt_id: Mapped[str] = mapped_column(
        ForeignKey("saved_prompts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    prompt: Mapped[SavedPrompt] = relationship(back_populates="versions")
