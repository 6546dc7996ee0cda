"""Saved prompt request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PromptVersionRead(BaseModel):
    """Serialized prompt version."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    date_created: datetime


class SavedPromptRead(BaseModel):
    """Saved prompt with every version, newest first."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    versions: list[PromptVersionRead]
    created_at: datetime
    updated_at: datetime


class SavedPromptSummary(BaseModel):
    """Saved prompt list row showing only the latest version."""

    id: str
    name: str
    latest_version: PromptVersionRead | None
    versions_count: int
    created_at: datetime
    updated_at: datetime


class SavedPromptsListResponse(BaseModel):
    """Paginated saved prompt list payload."""

    items: list[SavedPromptSummary]
    total: int
    limit: int
    offset: int
    has_more: bool


class SavedPromptCreate(BaseModel):
    """Payload for creating a prompt with its first version."""

    name: str = Field(min_length=1, max_length=255)
    text: str = Field(min_length=1)


class SavedPromptUpdate(BaseModel):
    """Rename a prompt and/or append a new version."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    text: str | None = None
    add_version: bool = False

    @model_validator(mode="after")
    def validate_non_empty_update(self) -> "SavedPromptUpdate":
        if self.name is None and not (self.add_version and self.text):
            raise ValueError("Provide a new name or text with add_version=true.")
        return self
