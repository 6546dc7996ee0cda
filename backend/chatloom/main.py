"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from chatloom.config import get_settings
from chatloom.db.session import SessionLocal
from chatloom.routers import ai, conversations, saved_prompts
from chatloom.services.chat import build_chat_service

logger = logging.getLogger(__name__)


def _warm_backend_state() -> None:
    """Prime the DB connection at process start."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Backend warm-up failed; continuing without startup pre-warm.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    _warm_backend_state()
    app.state.chat_service = build_chat_service(get_settings())
    yield


settings = get_settings()
app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(conversations.router, tags=["conversations"])
app.include_router(saved_prompts.router, tags=["saved-prompts"])
app.include_router(ai.router, tags=["ai"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
