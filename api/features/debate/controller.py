"""Controller for the Debate feature."""
import logging
from typing import Optional, Union

from fastapi.responses import JSONResponse

from api.features.debate.dtos import DebateResponse, FormatErrorResponse
from api.features.debate.models import OutcomeStatus
from api.features.debate.repository import ConversationStore
from api.features.debate.service import DebateService
from api.shared.dtos import ErrorResponse, HealthCheckResponse

logger = logging.getLogger("debate.controller")

CONVERSATION_NOT_FOUND = "Conversation not found."


class DebateController:
    """Maps service outcomes onto HTTP responses."""

    def __init__(self, debate_service: DebateService, store: ConversationStore):
        self.debate_service = debate_service
        self.store = store

    async def debate(
        self, *, conversation_id: Optional[str], message: str
    ) -> Union[DebateResponse, JSONResponse]:
        outcome = await self.debate_service.handle_message(conversation_id, message)

        if outcome.status == OutcomeStatus.FORMAT_ERROR:
            result = outcome.format_result
            body = FormatErrorResponse(
                error=result.error,
                status_code=400,
                example=result.example,
                format=result.format,
            )
            return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

        if outcome.status == OutcomeStatus.NOT_FOUND:
            body = ErrorResponse(error=CONVERSATION_NOT_FOUND, status_code=404)
            return JSONResponse(status_code=404, content=body.model_dump(exclude_none=True))

        logger.info(
            f"Debate turn completed: {outcome.conversation_id} "
            f"({len(outcome.messages)} messages returned)"
        )
        return DebateResponse(
            conversation_id=outcome.conversation_id, message=outcome.messages
        )

    async def health(self) -> HealthCheckResponse:
        store_ok = await self.store.ping()
        return HealthCheckResponse(
            status="healthy" if store_ok else "degraded",
            dependencies={"store": "ok" if store_ok else "unavailable"},
        )
