"""Success/failure envelope shared by the chat and conversation services."""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Failure codes returned inside a ``ServiceResult``."""

    INVALID_MESSAGES = "INVALID_MESSAGES"
    INVALID_CONFIG = "INVALID_CONFIG"
    NO_MESSAGES = "NO_MESSAGES"
    BACKEND_CONNECTION_ERROR = "BACKEND_CONNECTION_ERROR"
    BACKEND_API_ERROR = "BACKEND_API_ERROR"
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_SENDER = "INVALID_SENDER"
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"
    INVALID_MESSAGE_INDEX = "INVALID_MESSAGE_INDEX"
    MESSAGE_NOT_EDITABLE = "MESSAGE_NOT_EDITABLE"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class ServiceError(BaseModel):
    """Structured failure description."""

    code: ErrorCode
    message: str
    details: Any | None = None


class ServiceResult(BaseModel, Generic[T]):
    """Either ``success=True`` with ``data`` or ``success=False`` with ``error``."""

    success: bool
    data: T | None = None
    error: ServiceError | None = None

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, details: Any | None = None) -> ServiceResult[T]:
        return cls(success=False, error=ServiceError(code=code, message=message, details=details))
