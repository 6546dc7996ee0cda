"""Schemas for AI generation requests and model configuration."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatloom.schemas.message import Message


class AIServiceConfig(BaseModel):
    """Effective generation parameters for one backend call."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    provider: str = Field(default="google", min_length=1)
    model: str = Field(default="gemini-2.0-flash", min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=2048, ge=1)
    response_delay_ms: int = Field(default=0, ge=0)
    backend_url: str | None = None

    def merged(self, overrides: dict[str, Any]) -> "AIServiceConfig":
        """Return a validated copy with non-null overrides applied."""

        values = self.model_dump()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return AIServiceConfig.model_validate(values)


class ModelConfiguration(BaseModel):
    """Caller-supplied model parameters; omitted fields fall back to service defaults."""

    model_config = ConfigDict(protected_namespaces=())

    provider: str | None = Field(default=None, min_length=1)
    model_name: str | None = Field(default=None, min_length=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    max_output_tokens: int | None = Field(default=None, ge=1)
    response_delay_ms: int | None = Field(default=None, ge=0)
    backend_url: str | None = None

    def to_overrides(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model_name,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_output_tokens": self.max_output_tokens,
            "response_delay_ms": self.response_delay_ms,
            "backend_url": self.backend_url,
        }


class ChatRequest(BaseModel):
    """Complete message history plus optional overrides for one generation."""

    messages: list[Message]
    config: ModelConfiguration | None = None
    max_context_messages: int | None = Field(default=None, ge=1)


class ChatResponse(BaseModel):
    """Generated assistant content and the model that produced it."""

    model_config = ConfigDict(protected_namespaces=())

    content: str
    model: str
    provider: str


class BackendStatus(BaseModel):
    """Reachability of the configured AI backend."""

    backend_url: str
    available: bool