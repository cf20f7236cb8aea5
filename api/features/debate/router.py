"""Router for the Debate feature."""
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from api.di.container import ApplicationContainer as DependencyContainer
from api.features.debate.controller import DebateController
from api.features.debate.dtos import DebateRequest, DebateResponse, FormatErrorResponse
from api.shared.auth import require_api_key
from api.shared.dtos import ErrorResponse, HealthCheckResponse
from api.shared.response import ResponseModel

router = APIRouter()


@router.get("/health", response_model=ResponseModel[HealthCheckResponse])
@inject
async def health_check(
    controller: DebateController = Depends(
        Provide[DependencyContainer.controllers.debate_controller]
    ),
):
    """Health check endpoint for the debate service."""
    health = await controller.health()
    return ResponseModel.success(
        data=health, message=f"Debate service is {health.status}"
    )


@router.post(
    "/debate",
    response_model=DebateResponse,
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": FormatErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Conversation not found"},
        503: {"model": ErrorResponse, "description": "Conversation store unavailable"},
    },
)
@inject
async def debate(
    request: DebateRequest,
    controller: DebateController = Depends(
        Provide[DependencyContainer.controllers.debate_controller]
    ),
):
    """Start or continue a debate conversation."""
    return await controller.debate(
        conversation_id=request.conversation_id, message=request.message
    )
