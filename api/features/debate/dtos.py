"""DTOs for the Debate feature."""
from typing import List, Optional

from pydantic import Field, StrictStr

from api.features.debate.models import ConversationMessage
from api.shared.dtos import BaseDTO, ErrorResponse


class DebateRequest(BaseDTO):
    """Start (no conversation_id) or continue a debate."""

    conversation_id: Optional[str] = Field(
        default=None,
        description="Conversation ID (omit or null to start a new one)",
    )
    message: StrictStr = Field(
        ...,
        min_length=1,
        description="The debate message. Format: 'Debate: [topic]. Take side: [stance]'",
        examples=["Debate: The earth is flat. Take side: You agree"],
    )


class DebateResponse(BaseDTO):
    """Conversation id plus the most recent messages."""

    conversation_id: str = Field(description="Conversation identifier")
    message: List[ConversationMessage] = Field(
        description="Most recent messages in chronological order"
    )


class FormatErrorResponse(ErrorResponse):
    """Returned when the first message does not follow the debate format."""

    example: str = Field(description="Example of a valid first message")
    format: str = Field(description="Expected format")
