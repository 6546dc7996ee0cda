"""Saved prompt routes."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from chatloom.db.dependencies import get_db
from chatloom.schemas.common import ApiResponse, DeleteResult
from chatloom.schemas.saved_prompt import (
    SavedPromptCreate,
    SavedPromptRead,
    SavedPromptsListResponse,
    SavedPromptUpdate,
)
from chatloom.services.saved_prompts import (
    create_saved_prompt,
    delete_saved_prompt,
    get_saved_prompt,
    list_saved_prompts,
    update_saved_prompt,
)

router = APIRouter(prefix="/saved-prompts")


@router.get("", response_model=ApiResponse[SavedPromptsListResponse])
def get_saved_prompts(
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> ApiResponse[SavedPromptsListResponse]:
    """List saved prompts with their latest version."""

    return ApiResponse(data=list_saved_prompts(db, limit=limit, offset=offset))


@router.post("", response_model=ApiResponse[SavedPromptRead], status_code=201)
def post_saved_prompt(
    payload: SavedPromptCreate,
    db: Session = Depends(get_db),
) -> ApiResponse[SavedPromptRead]:
    return ApiResponse(data=create_saved_prompt(db, name=payload.name, text=payload.text))


@router.get("/{prompt_id}", response_model=ApiResponse[SavedPromptRead])
def get_saved_prompt_detail(
    prompt_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[SavedPromptRead]:
    """Return one prompt with every version, newest first."""

    prompt = get_saved_prompt(db, prompt_id)
    if prompt is None:
        raise HTTPException(status_code=404, detail="Prompt not found")
    return ApiResponse(data=prompt)


@router.put("/{prompt_id}", response_model=ApiResponse[SavedPromptRead])
def put_saved_prompt(
    payload: SavedPromptUpdate,
    prompt_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[SavedPromptRead]:
    prompt = update_saved_prompt(db, prompt_id, payload)
    if prompt is None:
        raise HTTPException(status_code=404, detail="Prompt not found")
    return ApiResponse(data=prompt)


@router.delete("/{prompt_id}", response_model=ApiResponse[DeleteResult])
def remove_saved_prompt(
    prompt_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    if not delete_saved_prompt(db, prompt_id):
        raise HTTPException(status_code=404, detail="Prompt not found")
    return ApiResponse(data=DeleteResult(id=prompt_id, deleted=True))
