"""Debate service: start or continue a conversation in one call.

A request without a conversation id starts a NEW conversation from a
``Debate: <topic>. Take side: <stance>`` message; a request with an id
CONTINUEs it. Store writes within one call are strictly sequential:
user message, then reply generation, then the agent message.

At most one in-flight request per conversation id is assumed. Concurrent
requests on the same id race on the history append and may lose a message.
"""
from __future__ import annotations

import uuid
from typing import List, Literal, Optional

import structlog

from api.features.debate.exceptions import StoreUnavailableError
from api.features.debate.models import (
    ConversationMessage,
    DebateOutcome,
    OutcomeStatus,
)
from api.features.debate.repository import DEFAULT_HISTORY_LIMIT, ConversationStore
from api.features.debate.validators import validate_debate_format
from bot.pipeline.reply_generator import ReplyGenerator

logger = structlog.get_logger("debate.service")

AppendFailurePolicy = Literal["fail", "retry", "drop"]


class DebateService:
    def __init__(
        self,
        store: ConversationStore,
        reply_generator: ReplyGenerator,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        append_failure_policy: AppendFailurePolicy = "fail",
        append_retry_attempts: int = 2,
    ):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.store = store
        self.reply_generator = reply_generator
        self.history_limit = history_limit
        self.append_failure_policy = append_failure_policy
        self.append_retry_attempts = append_retry_attempts

    async def handle_message(
        self, conversation_id: Optional[str], message: str
    ) -> DebateOutcome:
        if not conversation_id:
            outcome = await self._start_conversation(message)
            if not outcome.is_ok:
                return outcome
            conversation_id = outcome.conversation_id
            history = outcome.messages
        else:
            history = await self.store.get_history(conversation_id)
            if history is None:
                logger.info("conversation_not_found", conversation_id=conversation_id)
                return DebateOutcome(
                    status=OutcomeStatus.NOT_FOUND, conversation_id=conversation_id
                )
            history = await self._append(
                conversation_id, ConversationMessage.from_user(message), history
            )

        reply = await self.reply_generator.generate_reply(history, conversation_id)
        history = await self._append(
            conversation_id, ConversationMessage.from_agent(reply), history
        )

        trimmed = history[-self.history_limit:]
        return DebateOutcome(
            status=OutcomeStatus.OK, conversation_id=conversation_id, messages=trimmed
        )

    async def _start_conversation(self, message: str) -> DebateOutcome:
        validation = validate_debate_format(message)
        if not validation.is_valid:
            logger.info("debate_format_rejected", error_kind=validation.error_kind)
            return DebateOutcome(
                status=OutcomeStatus.FORMAT_ERROR, format_result=validation
            )

        conversation_id = str(uuid.uuid4())
        history = await self.store.create_conversation(
            conversation_id,
            validation.topic,
            validation.stance,
            ConversationMessage.from_user(message),
        )
        logger.info(
            "debate_started",
            conversation_id=conversation_id,
            topic=validation.topic,
            stance=validation.stance,
        )
        return DebateOutcome(
            status=OutcomeStatus.OK, conversation_id=conversation_id, messages=history
        )

    async def _append(
        self,
        conversation_id: str,
        message: ConversationMessage,
        history: List[ConversationMessage],
    ) -> List[ConversationMessage]:
        """Append under the configured failure policy.

        Returns the history as written. A dropped message is still part of the
        returned list so the reply addresses it, but it is not persisted.
        """
        attempts = self.append_retry_attempts if self.append_failure_policy == "retry" else 1
        last_error: Optional[StoreUnavailableError] = None
        for attempt in range(1, attempts + 1):
            try:
                return await self.store.append_message(conversation_id, message)
            except StoreUnavailableError as e:
                last_error = e
                logger.warning(
                    "append_failed",
                    conversation_id=conversation_id,
                    role=message.role,
                    attempt=attempt,
                    policy=self.append_failure_policy,
                )

        if self.append_failure_policy == "drop":
            logger.error(
                "append_dropped", conversation_id=conversation_id, role=message.role
            )
            return [*history, message]
        assert last_error is not None
        raise last_error
