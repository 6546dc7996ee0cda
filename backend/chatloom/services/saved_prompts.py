"""Saved prompt template services."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from chatloom.models.saved_prompt import SavedPrompt, SavedPromptVersion
from chatloom.schemas.saved_prompt import (
    PromptVersionRead,
    SavedPromptRead,
    SavedPromptsListResponse,
    SavedPromptSummary,
    SavedPromptUpdate,
)


def create_saved_prompt(db: Session, *, name: str, text: str) -> SavedPromptRead:
    """Create a prompt with its first version."""

    now = datetime.now(timezone.utc)
    prompt = SavedPrompt(name=name.strip(), created_at=now, updated_at=now)
    prompt.versions.append(SavedPromptVersion(text=text.strip(), date_created=now))
    db.add(prompt)
    db.commit()
    db.refresh(prompt)
    return _to_read(prompt)


def list_saved_prompts(db: Session, *, limit: int = 20, offset: int = 0) -> SavedPromptsListResponse:
    """Return prompt summaries with their latest version, most recently updated first."""

    total = int(db.scalar(select(func.count()).select_from(SavedPrompt)) or 0)
    prompts = db.scalars(
        select(SavedPrompt)
        .options(selectinload(SavedPrompt.versions))
        .order_by(SavedPrompt.updated_at.desc(), SavedPrompt.id.asc())
        .limit(limit)
        .offset(offset)
    ).all()

    items: list[SavedPromptSummary] = []
    for prompt in prompts:
        versions = _newest_first(prompt.versions)
        items.append(
            SavedPromptSummary(
                id=prompt.id,
                name=prompt.name,
                latest_version=PromptVersionRead.model_validate(versions[0]) if versions else None,
                versions_count=len(versions),
                created_at=prompt.created_at,
                updated_at=prompt.updated_at,
            )
        )
    return SavedPromptsListResponse(
        items=items,
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(prompts) < total,
    )


def get_saved_prompt(db: Session, prompt_id: str) -> SavedPromptRead | None:
    prompt = _load(db, prompt_id)
    if prompt is None:
        return None
    return _to_read(prompt)


def update_saved_prompt(db: Session, prompt_id: str, payload: SavedPromptUpdate) -> SavedPromptRead | None:
    """Rename a prompt and/or append a version; existing versions are never rewritten."""

    prompt = _load(db, prompt_id)
    if prompt is None:
        return None

    now = datetime.now(timezone.utc)
    if payload.add_version and payload.text and payload.text.strip():
        prompt.versions.append(SavedPromptVersion(text=payload.text.strip(), date_created=now))
    if payload.name:
        prompt.name = payload.name.strip()
    prompt.updated_at = now
    db.commit()
    db.refresh(prompt)
    return _to_read(prompt)


def delete_saved_prompt(db: Session, prompt_id: str) -> bool:
    prompt = _load(db, prompt_id)
    if prompt is None:
        return False
    db.delete(prompt)
    db.commit()
    return True


def _load(db: Session, prompt_id: str) -> SavedPrompt | None:
    return db.scalar(
        select(SavedPrompt).options(selectinload(SavedPrompt.versions)).where(SavedPrompt.id == prompt_id)
    )


def _newest_first(versions: list[SavedPromptVersion]) -> list[SavedPromptVersion]:
    return sorted(versions, key=lambda version: (version.date_created, version.id), reverse=True)


def _to_read(prompt: SavedPrompt) -> SavedPromptRead:
    return SavedPromptRead(
        id=prompt.id,
        name=prompt.name,
        versions=[PromptVersionRead.model_validate(version) for version in _newest_first(prompt.versions)],
        created_at=prompt.created_at,
        updated_at=prompt.updated_at,
    )
