"""SQLAlchemy metadata registry import for Alembic."""

from chatloom.models import Conversation, SavedPrompt, SavedPromptVersion
from chatloom.models.base import Base

__all__ = ["Base", "Conversation", "SavedPrompt", "SavedPromptVersion"]
