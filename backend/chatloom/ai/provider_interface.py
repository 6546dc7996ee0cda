"""Capability protocol for anything that can generate chat responses."""

from typing import Protocol

from chatloom.schemas.chat import AIServiceConfig
from chatloom.schemas.message import AIMessage


class ChatProvider(Protocol):
    """Protocol for chat generation providers.

    The HTTP backend client is one implementation; direct provider clients
    can be added by satisfying the same methods.
    """

    @property
    def base_url(self) -> str:
        """Address reported to users when the provider cannot be reached."""

    def generate_response(self, messages: list[AIMessage], config: AIServiceConfig) -> str:
        """Return trimmed assistant text for the provided context."""

    def is_available(self) -> bool:
        """Return whether the provider currently answers health checks."""
