"""HTTP client for the external AI inference backend."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any
from urllib import error as urllib_error
from urllib import request as urllib_request

from chatloom.schemas.chat import AIServiceConfig
from chatloom.schemas.message import AIMessage

logger = logging.getLogger(__name__)


class AIBackendError(RuntimeError):
    """Raised when the AI backend call fails for a reason not covered below."""


class BackendApiError(AIBackendError):
    """Raised when the backend answers with a non-success HTTP status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"AI Backend API error ({status}): {body}")
        self.status = status
        self.body = body


class EmptyResponseError(AIBackendError):
    """Raised when the backend answers with blank text."""

    def __init__(self) -> None:
        super().__init__("Backend returned an empty response")


class BackendConnectionError(AIBackendError):
    """Raised when no response was received: refused, unresolvable or timed out."""

    def __init__(self, url: str, reason: object) -> None:
        super().__init__(f"Failed to connect to {url}: {reason}")
        self.url = url
        self.reason = reason


@dataclass(frozen=True, slots=True)
class AIBackendConfig:
    """Connection settings; replaced as a whole, never mutated in place."""

    base_url: str
    timeout_seconds: float = 30.0
    generate_path: str = "/invoke"
    health_path: str = "/health"
    health_timeout_seconds: float = 5.0


class AIBackendClient:
    """Transport-only wrapper around the backend generate and health endpoints."""

    def __init__(self, config: AIBackendConfig) -> None:
        self._config = config
        logger.info("ai_backend.client_initialized base_url=%s", config.base_url)

    @property
    def config(self) -> AIBackendConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def update_config(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> AIBackendConfig:
        """Swap in a new config; requests already in flight keep the old one."""

        changes: dict[str, Any] = {}
        if base_url:
            changes["base_url"] = base_url
        if timeout_seconds is not None:
            changes["timeout_seconds"] = timeout_seconds
        if changes:
            self._config = replace(self._config, **changes)
            logger.info(
                "ai_backend.config_updated base_url=%s timeout_seconds=%s",
                self._config.base_url,
                self._config.timeout_seconds,
            )
        return self._config

    def generate_response(self, messages: list[AIMessage], config: AIServiceConfig) -> str:
        """POST the context to the backend and return the trimmed response text."""

        backend = self._config
        base_url = config.backend_url or backend.base_url
        url = _join_url(base_url, backend.generate_path)
        payload = {
            "messages": [message.model_dump() for message in messages],
            "temperature": config.temperature,
            "top_p": config.top_p,
            "model_name": config.model,
            "model_provider": config.provider,
        }
        logger.debug(
            "ai_backend.generate url=%s message_count=%d model=%s provider=%s",
            url,
            len(messages),
            config.model,
            config.provider,
        )
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib_request.urlopen(req, timeout=backend.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise BackendApiError(exc.code, detail or str(exc.reason)) from exc
        except urllib_error.URLError as exc:
            raise BackendConnectionError(base_url, exc.reason) from exc
        except (TimeoutError, ConnectionError) as exc:
            raise BackendConnectionError(base_url, exc) from exc

        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise AIBackendError("AI backend returned a non-JSON response") from exc
        content = decoded.get("response") if isinstance(decoded, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise EmptyResponseError()

        logger.info("ai_backend.response_received response_length=%d", len(content))
        return content.strip()

    def is_healthy(self) -> bool:
        """GET the health endpoint; any failure counts as unhealthy."""

        backend = self._config
        url = _join_url(backend.base_url, backend.health_path)
        try:
            with urllib_request.urlopen(url, timeout=backend.health_timeout_seconds) as resp:
                return 200 <= resp.status < 300
        except Exception as exc:  # noqa: BLE001
            logger.warning("ai_backend.health_check_failed url=%s error=%s", url, exc)
            return False

    def is_available(self) -> bool:
        return self.is_healthy()


def _join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
