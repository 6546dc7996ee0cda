"""Chat orchestration: turns a message history into a generated reply or a structured error."""

from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import ValidationError

from chatloom.ai.backend_client import (
    AIBackendClient,
    AIBackendConfig,
    BackendApiError,
    BackendConnectionError,
)
from chatloom.ai.message_mapper import (
    DEFAULT_MAX_CONTEXT_MESSAGES,
    create_user_message,
    prepare_ai_context,
    validate_messages,
)
from chatloom.ai.provider_interface import ChatProvider
from chatloom.config import Settings, get_settings
from chatloom.schemas.chat import AIServiceConfig, ChatRequest, ChatResponse, ModelConfiguration
from chatloom.schemas.results import ErrorCode, ServiceResult

logger = logging.getLogger(__name__)


class ChatService:
    """Single entry point for AI generation.

    ``generate_response`` receives the complete history once and forwards it
    once; it never accepts a separate "current message" on top of a history
    that already contains it. No exception escapes it.
    """

    def __init__(
        self,
        provider: ChatProvider,
        default_config: AIServiceConfig | None = None,
        *,
        max_context_messages: int = DEFAULT_MAX_CONTEXT_MESSAGES,
    ) -> None:
        self._provider = provider
        self._default_config = default_config or AIServiceConfig()
        self._max_context_messages = max_context_messages
        logger.info(
            "chat_service.initialized model=%s provider=%s",
            self._default_config.model,
            self._default_config.provider,
        )

    @property
    def provider(self) -> ChatProvider:
        return self._provider

    def get_config(self) -> AIServiceConfig:
        return self._default_config

    def update_config(self, overrides: ModelConfiguration) -> AIServiceConfig:
        """Replace the service defaults; a new backend URL is pushed to the provider."""

        values = overrides.to_overrides()
        backend_url = values.pop("backend_url", None)
        self._default_config = self._default_config.merged(values)
        if backend_url and isinstance(self._provider, AIBackendClient):
            self._provider.update_config(base_url=backend_url)
            logger.info("chat_service.backend_url_updated backend_url=%s", backend_url)
        elif backend_url:
            logger.warning(
                "chat_service.backend_url_ignored provider=%s backend_url=%s",
                type(self._provider).__name__,
                backend_url,
            )
        return self._default_config

    def generate_response(self, request: ChatRequest) -> ServiceResult[ChatResponse]:
        validation = validate_messages(request.messages)
        if not validation.valid:
            return ServiceResult.fail(
                ErrorCode.INVALID_MESSAGES,
                "Message validation failed",
                details=validation.issues,
            )

        try:
            overrides: dict[str, Any] = request.config.to_overrides() if request.config else {}
            effective = self._default_config.merged(overrides)
        except ValidationError as exc:
            return ServiceResult.fail(
                ErrorCode.INVALID_CONFIG,
                "Model configuration is out of range",
                details=exc.errors(include_url=False),
            )

        max_context = request.max_context_messages or self._max_context_messages
        ai_messages = prepare_ai_context(request.messages, max_context)
        if not ai_messages:
            return ServiceResult.fail(ErrorCode.NO_MESSAGES, "No valid messages found for AI processing")

        logger.info(
            "chat_service.generate message_count=%d model=%s provider=%s temperature=%.2f",
            len(ai_messages),
            effective.model,
            effective.provider,
            effective.temperature,
        )
        if effective.response_delay_ms > 0:
            # Artificial latency for demos and UI testing.
            time.sleep(effective.response_delay_ms / 1000)
        try:
            content = self._provider.generate_response(ai_messages, effective)
        except BackendConnectionError:
            backend_url = effective.backend_url or self._provider.base_url
            logger.exception("chat_service.backend_unreachable backend_url=%s", backend_url)
            return ServiceResult.fail(
                ErrorCode.BACKEND_CONNECTION_ERROR,
                f"Failed to connect to AI backend at {backend_url}. Please check if the backend is running.",
            )
        except BackendApiError as exc:
            logger.error("chat_service.backend_api_error status=%d", exc.status)
            return ServiceResult.fail(
                ErrorCode.BACKEND_API_ERROR,
                str(exc),
                details={"status": exc.status, "body": exc.body},
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("chat_service.generate_failed message_count=%d", len(ai_messages))
            return ServiceResult.fail(ErrorCode.AI_SERVICE_ERROR, str(exc) or "Unknown AI service error")

        return ServiceResult.ok(
            ChatResponse(content=content, model=effective.model, provider=effective.provider)
        )

    def is_backend_available(self) -> bool:
        try:
            return bool(self._provider.is_available())
        except Exception:  # noqa: BLE001
            logger.exception("chat_service.availability_check_failed")
            return False

    def test_connection(self) -> ServiceResult[ChatResponse]:
        """Send one synthetic greeting through the full generation path."""

        return self.generate_response(ChatRequest(messages=[create_user_message("Hello")]))


def build_chat_service(settings: Settings | None = None) -> ChatService:
    """Construct a chat service backed by the HTTP backend client."""

    settings = settings or get_settings()
    client = AIBackendClient(
        AIBackendConfig(
            base_url=settings.ai_backend_url,
            timeout_seconds=settings.ai_backend_timeout_seconds,
            generate_path=settings.ai_backend_generate_path,
            health_timeout_seconds=settings.ai_health_timeout_seconds,
        )
    )
    defaults = AIServiceConfig(
        provider=settings.default_model_provider,
        model=settings.default_model_name,
        temperature=settings.default_temperature,
        top_p=settings.default_top_p,
        max_output_tokens=settings.default_max_output_tokens,
    )
    return ChatService(client, defaults, max_context_messages=settings.max_context_messages)
