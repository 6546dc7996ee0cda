"""Conversation routes: CRUD plus message append/edit."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from chatloom.db.dependencies import get_db
from chatloom.dependencies import get_chat_service
from chatloom.schemas.common import ApiResponse, DeleteResult
from chatloom.schemas.conversation import (
    AppendMessageRequest,
    ConversationCreate,
    ConversationRead,
    ConversationsListResponse,
    ConversationUpdate,
    EditMessageRequest,
)
from chatloom.schemas.results import ErrorCode, ServiceResult
from chatloom.services.chat import ChatService
from chatloom.services.conversations import (
    append_message,
    create_conversation,
    delete_conversation,
    edit_message,
    get_conversation,
    list_conversations,
    rename_conversation,
)
from chatloom.services.repository import ConcurrentModificationError

router = APIRouter(prefix="/conversations")

_ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.CONVERSATION_NOT_FOUND: 404,
    ErrorCode.CONCURRENT_MODIFICATION: 409,
    ErrorCode.PERSISTENCE_ERROR: 500,
}


def _unwrap(result: ServiceResult[ConversationRead]) -> ConversationRead:
    if result.success and result.data is not None:
        return result.data
    if result.error is None:
        raise HTTPException(status_code=500, detail="Conversation update failed")
    raise HTTPException(status_code=_ERROR_STATUS.get(result.error.code, 400), detail=result.error.message)


@router.get("", response_model=ApiResponse[ConversationsListResponse])
def get_conversations(
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> ApiResponse[ConversationsListResponse]:
    """List conversations ordered by most recent activity."""

    return ApiResponse(data=list_conversations(db, limit=limit, offset=offset))


@router.post("", response_model=ApiResponse[ConversationRead], status_code=201)
def post_conversation(
    payload: ConversationCreate,
    db: Session = Depends(get_db),
) -> ApiResponse[ConversationRead]:
    """Start a new, empty conversation."""

    return ApiResponse(data=create_conversation(db, payload.title))


@router.get("/{conversation_id}", response_model=ApiResponse[ConversationRead])
def get_conversation_detail(
    conversation_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ConversationRead]:
    conversation = get_conversation(db, conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ApiResponse(data=conversation)


@router.put("/{conversation_id}", response_model=ApiResponse[ConversationRead])
def put_conversation(
    payload: ConversationUpdate,
    conversation_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ConversationRead]:
    """Rename a conversation."""

    try:
        conversation = rename_conversation(db, conversation_id, payload.title)
    except ConcurrentModificationError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ApiResponse(data=conversation)


@router.delete("/{conversation_id}", response_model=ApiResponse[DeleteResult])
def remove_conversation(
    conversation_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    if not delete_conversation(db, conversation_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ApiResponse(data=DeleteResult(id=conversation_id, deleted=True))


@router.post("/{conversation_id}/messages", response_model=ApiResponse[ConversationRead])
def post_message(
    payload: AppendMessageRequest,
    conversation_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ApiResponse[ConversationRead]:
    """Add a message; user messages also get an assistant reply or a visible error reply."""

    result = append_message(
        db,
        conversation_id,
        content=payload.content,
        sender=payload.sender,
        system_prompt=payload.system_prompt,
        model_config=payload.config,
        chat_service=chat_service,
    )
    return ApiResponse(data=_unwrap(result))


@router.put("/{conversation_id}/edit-message", response_model=ApiResponse[ConversationRead])
def put_edited_message(
    payload: EditMessageRequest,
    conversation_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ApiResponse[ConversationRead]:
    """Rewrite a visible user message, truncate the tail and regenerate the reply."""

    result = edit_message(
        db,
        conversation_id,
        message_index=payload.message_index,
        new_content=payload.new_content,
        system_prompt=payload.system_prompt,
        model_config=payload.config,
        chat_service=chat_service,
    )
    return ApiResponse(data=_unwrap(result))
