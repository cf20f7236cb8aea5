"""Reply generation: topic lookup -> prompt -> backend, with a fixed fallback.

Backend problems never leave this module. The caller always gets a string so
the conversation can advance even when the model endpoint is down. Store
unavailability is not a backend problem and propagates.
"""
from __future__ import annotations

from typing import Sequence

import structlog

from api.features.debate.models import ConversationMessage
from api.features.debate.repository import ConversationStore
from bot.backends.chat_backend import GenerationBackend
from bot.prompts.debate.debate_reply import build_debate_prompt

logger = structlog.get_logger("debate.reply")

FALLBACK_REPLY = "Sorry, I don't know what to say but I'm sure you're wrong."
DEFAULT_TEMPERATURE = 0.7


class ReplyGenerator:
    def __init__(
        self,
        store: ConversationStore,
        backend: GenerationBackend,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.store = store
        self.backend = backend
        self.temperature = temperature

    async def generate_reply(
        self, history: Sequence[ConversationMessage], conversation_id: str
    ) -> str:
        context = await self.store.get_topic(conversation_id)
        if context is None:
            logger.warning(
                "reply_fallback_used",
                conversation_id=conversation_id,
                reason="topic_missing",
            )
            return FALLBACK_REPLY

        prompt = build_debate_prompt(history=history, context=context)

        try:
            generated = await self.backend.generate(
                prompt, temperature=self.temperature
            )
        except Exception as e:
            logger.warning(
                "reply_fallback_used",
                conversation_id=conversation_id,
                reason="backend_failure",
                error=str(e),
            )
            return FALLBACK_REPLY

        if not isinstance(generated, str) or not generated.strip():
            logger.warning(
                "reply_fallback_used",
                conversation_id=conversation_id,
                reason="empty_reply",
            )
            return FALLBACK_REPLY

        return generated.strip()
