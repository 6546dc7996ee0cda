"""HTTP-level tests for the conversation, saved prompt and AI routes."""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chatloom.db.dependencies import get_db
from chatloom.dependencies import get_chat_service
from chatloom.main import app
from chatloom.models.base import Base
from chatloom.models.conversation import Conversation
from chatloom.models.saved_prompt import SavedPrompt, SavedPromptVersion
from chatloom.schemas.chat import AIServiceConfig
from chatloom.services.chat import ChatService


class _StubProvider:
    def __init__(self) -> None:
        self.reply = "Stub reply."
        self.calls = []
        self.base_url = "http://stub-backend:8000"

    def generate_response(self, messages, config) -> str:
        self.calls.append((messages, config))
        return self.reply

    def is_available(self) -> bool:
        return False


class ApiRouteTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(bind=cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        with self.SessionLocal() as db:
            db.execute(delete(Conversation))
            db.execute(delete(SavedPromptVersion))
            db.execute(delete(SavedPrompt))
            db.commit()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.provider = _StubProvider()
        self.chat_service = ChatService(self.provider, AIServiceConfig())
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_chat_service] = lambda: self.chat_service
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _create_conversation(self, title: str = "Chat") -> str:
        response = self.client.post("/conversations", json={"title": title})
        self.assertEqual(response.status_code, 201)
        return response.json()["data"]["id"]

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_conversation_lifecycle(self) -> None:
        conversation_id = self._create_conversation()

        appended = self.client.post(
            f"/conversations/{conversation_id}/messages",
            json={"content": "Hi", "sender": "user", "system_prompt": "Be terse."},
        )
        self.assertEqual(appended.status_code, 200)
        body = appended.json()["data"]
        self.assertEqual([m["role"] for m in body["messages"]], ["system", "user", "assistant"])
        self.assertEqual(body["messages"][-1]["content"], "Stub reply.")

        edited = self.client.put(
            f"/conversations/{conversation_id}/edit-message",
            json={"message_index": 0, "new_content": "Hello again"},
        )
        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["data"]["messages"][1]["content"], "Hello again")

        renamed = self.client.put(f"/conversations/{conversation_id}", json={"title": "Renamed"})
        self.assertEqual(renamed.json()["data"]["title"], "Renamed")

        listing = self.client.get("/conversations", params={"limit": 5}).json()["data"]
        self.assertEqual(listing["total"], 1)
        self.assertEqual(listing["items"][0]["title"], "Renamed")

        deleted = self.client.delete(f"/conversations/{conversation_id}")
        self.assertEqual(deleted.json()["data"], {"id": conversation_id, "deleted": True})
        self.assertEqual(self.client.get(f"/conversations/{conversation_id}").status_code, 404)

    def test_conversation_error_statuses(self) -> None:
        conversation_id = self._create_conversation()
        self.client.post(f"/conversations/{conversation_id}/messages", json={"content": "Hi", "sender": "user"})

        missing = self.client.post("/conversations/missing-id/messages", json={"content": "Hi", "sender": "user"})
        not_editable = self.client.put(
            f"/conversations/{conversation_id}/edit-message",
            json={"message_index": 1, "new_content": "rewrite"},
        )
        bad_index = self.client.put(
            f"/conversations/{conversation_id}/edit-message",
            json={"message_index": 9, "new_content": "rewrite"},
        )
        blank = self.client.post(f"/conversations/{conversation_id}/messages", json={"content": "", "sender": "user"})

        self.assertEqual(missing.status_code, 404)
        self.assertEqual(not_editable.status_code, 400)
        self.assertEqual(not_editable.json()["detail"], "Can only edit user messages")
        self.assertEqual(bad_index.status_code, 400)
        self.assertEqual(blank.status_code, 422)

    def test_saved_prompt_routes(self) -> None:
        created = self.client.post("/saved-prompts", json={"name": "Reviewer", "text": "v1"})
        self.assertEqual(created.status_code, 201)
        prompt_id = created.json()["data"]["id"]

        updated = self.client.put(f"/saved-prompts/{prompt_id}", json={"text": "v2", "add_version": True})
        self.assertEqual([v["text"] for v in updated.json()["data"]["versions"]], ["v2", "v1"])

        listing = self.client.get("/saved-prompts").json()["data"]
        self.assertEqual(listing["items"][0]["latest_version"]["text"], "v2")

        self.assertEqual(self.client.put(f"/saved-prompts/{prompt_id}", json={"text": "v3"}).status_code, 422)
        self.assertEqual(self.client.delete(f"/saved-prompts/{prompt_id}").status_code, 200)
        missing = self.client.get(f"/saved-prompts/{prompt_id}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["detail"], "Prompt not found")

    def test_ai_routes(self) -> None:
        status = self.client.get("/ai/status").json()["data"]
        self.assertEqual(status, {"backend_url": "http://stub-backend:8000", "available": False})

        connection = self.client.post("/ai/test-connection").json()["data"]
        self.assertTrue(connection["success"])
        self.assertEqual(connection["data"]["content"], "Stub reply.")

        generated = self.client.post(
            "/ai/generate",
            json={"messages": [{"sender": "user", "content": "   ", "timestamp": "2026-10-01T12:00:00Z"}]},
        ).json()["data"]
        self.assertFalse(generated["success"])
        self.assertEqual(generated["error"]["code"], "INVALID_MESSAGES")

        updated = self.client.put("/ai/config", json={"model_name": "gpt-4o", "provider": "openai"})
        self.assertEqual(updated.json()["data"]["model"], "gpt-4o")
        self.assertEqual(self.client.get("/ai/config").json()["data"]["provider"], "openai")


if __name__ == "__main__":
    unittest.main()
