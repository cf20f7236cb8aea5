"""Models for the Debate feature."""
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    AGENT = "agent"


class ConversationTopic(BaseModel):
    """Topic and stance fixed at conversation start."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(description="Debate topic")
    stance: str = Field(description="Position the agent argues for")


class ConversationMessage(BaseModel):
    """Single turn in a conversation history."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: MessageRole = Field(description="Message role: user or agent")
    text: str = Field(description="Message content")

    @classmethod
    def from_user(cls, text: str) -> "ConversationMessage":
        return cls(role=MessageRole.USER, text=text)

    @classmethod
    def from_agent(cls, text: str) -> "ConversationMessage":
        return cls(role=MessageRole.AGENT, text=text)


class DebateFormatResult(BaseModel):
    """Result of parsing an initial ``Debate: ... Take side: ...`` message."""

    is_valid: bool = Field(description="Whether the message matched the format")
    topic: Optional[str] = Field(default=None, description="Parsed topic")
    stance: Optional[str] = Field(default=None, description="Parsed stance")
    error: Optional[str] = Field(default=None, description="Human-readable error")
    error_kind: Optional[Literal["missing_keywords", "empty_field"]] = Field(
        default=None, description="Which check failed"
    )
    example: Optional[str] = Field(default=None, description="Example of a valid message")
    format: Optional[str] = Field(default=None, description="Expected message format")


class OutcomeStatus(str, Enum):
    """Terminal state of a single debate request."""

    OK = "ok"
    FORMAT_ERROR = "format_error"
    NOT_FOUND = "not_found"


class DebateOutcome(BaseModel):
    """What the service hands back to the transport layer."""

    status: OutcomeStatus
    conversation_id: Optional[str] = None
    messages: List[ConversationMessage] = Field(default_factory=list)
    format_result: Optional[DebateFormatResult] = None

    @property
    def is_ok(self) -> bool:
        return self.status == OutcomeStatus.OK
