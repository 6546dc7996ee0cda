"""AI backend diagnostics and direct generation routes."""

from fastapi import APIRouter, Depends

from chatloom.dependencies import get_chat_service
from chatloom.schemas.chat import AIServiceConfig, BackendStatus, ChatRequest, ChatResponse, ModelConfiguration
from chatloom.schemas.common import ApiResponse
from chatloom.schemas.results import ServiceResult
from chatloom.services.chat import ChatService

router = APIRouter(prefix="/ai")


@router.get("/status", response_model=ApiResponse[BackendStatus])
def get_backend_status(chat_service: ChatService = Depends(get_chat_service)) -> ApiResponse[BackendStatus]:
    """Report whether the AI backend answers its health check."""

    return ApiResponse(
        data=BackendStatus(
            backend_url=chat_service.provider.base_url,
            available=chat_service.is_backend_available(),
        )
    )


@router.post("/test-connection", response_model=ApiResponse[ServiceResult[ChatResponse]])
def post_test_connection(
    chat_service: ChatService = Depends(get_chat_service),
) -> ApiResponse[ServiceResult[ChatResponse]]:
    return ApiResponse(data=chat_service.test_connection())


@router.post("/generate", response_model=ApiResponse[ServiceResult[ChatResponse]])
def post_generate(
    payload: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ApiResponse[ServiceResult[ChatResponse]]:
    """Generate a reply for an ad-hoc history without touching any conversation."""

    return ApiResponse(data=chat_service.generate_response(payload))


@router.get("/config", response_model=ApiResponse[AIServiceConfig])
def get_ai_config(chat_service: ChatService = Depends(get_chat_service)) -> ApiResponse[AIServiceConfig]:
    return ApiResponse(data=chat_service.get_config())


@router.put("/config", response_model=ApiResponse[AIServiceConfig])
def put_ai_config(
    payload: ModelConfiguration,
    chat_service: ChatService = Depends(get_chat_service),
) -> ApiResponse[AIServiceConfig]:
    """Change service-wide generation defaults and, optionally, the backend address."""

    return ApiResponse(data=chat_service.update_config(payload))
