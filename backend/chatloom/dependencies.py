"""FastAPI dependencies for long-lived service objects."""

from fastapi import Request

from chatloom.services.chat import ChatService, build_chat_service


def get_chat_service(request: Request) -> ChatService:
    """Return the chat service created at startup, building one on first use."""

    chat_service = getattr(request.app.state, "chat_service", None)
    if chat_service is None:
        chat_service = build_chat_service()
        request.app.state.chat_service = chat_service
    return chat_service
