"""Response envelope and small payloads shared by every router."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Consistent JSON envelope for API responses."""

    data: T


class DeleteResult(BaseModel):
    """Acknowledgement returned by delete endpoints."""

    id: str
    deleted: bool
