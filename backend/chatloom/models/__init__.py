"""ORM models package exports."""

from chatloom.models.conversation import Conversation
from chatloom.models.saved_prompt import SavedPrompt, SavedPromptVersion

__all__ = [
    "Conversation",
    "SavedPrompt",
    "SavedPromptVersion",
]
