"""Tests for the AI backend HTTP client against a local HTTP server."""

from __future__ import annotations

import json
import socket
import threading
import time
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from chatloom.ai.backend_client import (
    AIBackendClient,
    AIBackendConfig,
    AIBackendError,
    BackendApiError,
    BackendConnectionError,
    EmptyResponseError,
)
from chatloom.schemas.chat import AIServiceConfig
from chatloom.schemas.message import AIMessage


class _BackendHandler(BaseHTTPRequestHandler):
    def do_POST(self) -> None:  # noqa: N802
        length = int(self.headers.get("Content-Length", "0"))
        self.server.requests.append((self.path, json.loads(self.rfile.read(length) or b"{}")))
        if self.path == "/slow":
            time.sleep(0.5)
        status, body = self.server.next_response
        self._reply(status, body)

    def do_GET(self) -> None:  # noqa: N802
        self._reply(self.server.health_status, "{}")

    def _reply(self, status: int, body: str) -> None:
        raw = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        return


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class AIBackendClientTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.server = ThreadingHTTPServer(("127.0.0.1", 0), _BackendHandler)
        cls.server.daemon_threads = True
        cls.server.requests = []
        cls.server.next_response = (200, json.dumps({"response": "ok"}))
        cls.server.health_status = 200
        cls.thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.thread.start()
        cls.base_url = f"http://127.0.0.1:{cls.server.server_address[1]}"

    @classmethod
    def tearDownClass(cls) -> None:
        cls.server.shutdown()
        cls.server.server_close()

    def setUp(self) -> None:
        self.server.requests.clear()
        self.server.health_status = 200
        self.client = AIBackendClient(AIBackendConfig(base_url=self.base_url, timeout_seconds=5))
        self.messages = [
            AIMessage(role="system", content="Be terse."),
            AIMessage(role="user", content="Hi"),
        ]
        self.config = AIServiceConfig(provider="openai", model="gpt-4o-mini", temperature=0.3, top_p=0.9)

    def test_generate_posts_payload_and_returns_trimmed_text(self) -> None:
        self.server.next_response = (200, json.dumps({"response": "  Hello!  \n"}))

        text = self.client.generate_response(self.messages, self.config)

        self.assertEqual(text, "Hello!")
        path, payload = self.server.requests[0]
        self.assertEqual(path, "/invoke")
        self.assertEqual(
            payload,
            {
                "messages": [
                    {"role": "system", "content": "Be terse."},
                    {"role": "user", "content": "Hi"},
                ],
                "temperature": 0.3,
                "top_p": 0.9,
                "model_name": "gpt-4o-mini",
                "model_provider": "openai",
            },
        )

    def test_non_success_status_raises_api_error(self) -> None:
        self.server.next_response = (502, "upstream exploded")

        with self.assertRaises(BackendApiError) as ctx:
            self.client.generate_response(self.messages, self.config)

        self.assertEqual(ctx.exception.status, 502)
        self.assertEqual(ctx.exception.body, "upstream exploded")
        self.assertIn("AI Backend API error (502)", str(ctx.exception))

    def test_blank_response_raises_empty_response_error(self) -> None:
        self.server.next_response = (200, json.dumps({"response": "   "}))

        with self.assertRaises(EmptyResponseError):
            self.client.generate_response(self.messages, self.config)

    def test_non_json_body_raises_generic_backend_error(self) -> None:
        self.server.next_response = (200, "<html>not json</html>")

        with self.assertRaises(AIBackendError) as ctx:
            self.client.generate_response(self.messages, self.config)

        self.assertNotIsInstance(ctx.exception, (BackendApiError, BackendConnectionError))

    def test_unreachable_host_raises_connection_error(self) -> None:
        client = AIBackendClient(AIBackendConfig(base_url=f"http://127.0.0.1:{_unused_port()}", timeout_seconds=2))

        with self.assertRaises(BackendConnectionError):
            client.generate_response(self.messages, self.config)

    def test_timeout_is_reported_as_connection_error(self) -> None:
        client = AIBackendClient(
            AIBackendConfig(base_url=self.base_url, timeout_seconds=0.1, generate_path="/slow")
        )

        with self.assertRaises(BackendConnectionError):
            client.generate_response(self.messages, self.config)

    def test_per_request_backend_url_overrides_configured_base(self) -> None:
        client = AIBackendClient(AIBackendConfig(base_url=f"http://127.0.0.1:{_unused_port()}"))
        self.server.next_response = (200, json.dumps({"response": "routed"}))

        text = client.generate_response(self.messages, self.config.merged({"backend_url": self.base_url}))

        self.assertEqual(text, "routed")

    def test_health_check(self) -> None:
        self.assertTrue(self.client.is_healthy())
        self.assertTrue(self.client.is_available())

        self.server.health_status = 500
        self.assertFalse(self.client.is_healthy())

        down = AIBackendClient(AIBackendConfig(base_url=f"http://127.0.0.1:{_unused_port()}"))
        self.assertFalse(down.is_healthy())

    def test_update_config_swaps_whole_value(self) -> None:
        original = self.client.config

        updated = self.client.update_config(base_url="http://other:9000", timeout_seconds=12)

        self.assertEqual(self.client.base_url, "http://other:9000")
        self.assertEqual(updated.timeout_seconds, 12)
        self.assertEqual(original.base_url, self.base_url)
        self.assertIsNot(original, updated)


if __name__ == "__main__":
    unittest.main()
