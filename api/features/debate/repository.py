"""Conversation persistence for the Debate feature.

Each conversation is two independent key-value records sharing one expiry:

- ``<topic prefix><id>``   -> JSON ``{"topic": ..., "stance": ...}``
- ``<history prefix><id>`` -> JSON ``[{"role": ..., "text": ...}, ...]``

Every write resets the expiry of both records to the retention window.
Appends are read-modify-write and NOT compare-and-swap: two concurrent
appends to the same conversation can lose one of the messages.
"""
from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from api.features.debate.exceptions import StoreUnavailableError
from api.features.debate.models import ConversationMessage, ConversationTopic
from infra.resources import RedisResource

logger = structlog.get_logger("debate.store")

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_TOPIC_KEY_PREFIX = "conversation:topic:"
DEFAULT_HISTORY_KEY_PREFIX = "conversation:history:"
DEFAULT_HISTORY_LIMIT = 10


def _dump_topic(topic: ConversationTopic) -> str:
    return json.dumps(topic.model_dump(), ensure_ascii=False)


def _dump_history(history: List[ConversationMessage]) -> str:
    return json.dumps([m.model_dump() for m in history], ensure_ascii=False)


def _load_topic(raw: str) -> ConversationTopic:
    return ConversationTopic.model_validate_json(raw)


def _load_history(raw: str) -> List[ConversationMessage]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("history record must be a JSON array")
    return [ConversationMessage.model_validate(item) for item in data]


class ConversationStore(ABC):
    """Key-value persistence of topic/stance and message history with expiry."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    async def create_conversation(
        self,
        conversation_id: str,
        topic: str,
        stance: str,
        initial_message: ConversationMessage,
    ) -> List[ConversationMessage]:
        """Write the topic record and a one-message history together."""

    @abstractmethod
    async def get_topic(self, conversation_id: str) -> Optional[ConversationTopic]:
        """Return the topic record, or ``None`` when it does not exist."""

    @abstractmethod
    async def get_history(
        self, conversation_id: str
    ) -> Optional[List[ConversationMessage]]:
        """Return the full history, or ``None`` when it does not exist."""

    @abstractmethod
    async def append_message(
        self, conversation_id: str, message: ConversationMessage
    ) -> List[ConversationMessage]:
        """Append one message and return the history as written."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backing store is reachable."""

    async def trimmed_history(
        self, conversation_id: str, max_messages: int = DEFAULT_HISTORY_LIMIT
    ) -> List[ConversationMessage]:
        """Last ``max_messages`` entries, or an empty list for unknown ids."""
        history = await self.get_history(conversation_id)
        if not history or max_messages <= 0:
            return []
        return history[-max_messages:]


class RedisConversationStore(ConversationStore):
    """Redis-backed store using ``SET ... EX`` and ``GET``."""

    def __init__(
        self,
        redis_resource: RedisResource,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        topic_key_prefix: str = DEFAULT_TOPIC_KEY_PREFIX,
        history_key_prefix: str = DEFAULT_HISTORY_KEY_PREFIX,
    ):
        super().__init__(ttl_seconds)
        self.redis_resource = redis_resource
        self.topic_key_prefix = topic_key_prefix
        self.history_key_prefix = history_key_prefix

    def _topic_key(self, conversation_id: str) -> str:
        return f"{self.topic_key_prefix}{conversation_id}"

    def _history_key(self, conversation_id: str) -> str:
        return f"{self.history_key_prefix}{conversation_id}"

    async def create_conversation(
        self,
        conversation_id: str,
        topic: str,
        stance: str,
        initial_message: ConversationMessage,
    ) -> List[ConversationMessage]:
        history = [initial_message]
        client = self.redis_resource.get_client()
        try:
            # MULTI/EXEC so the topic and history records are created together
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(
                    self._topic_key(conversation_id),
                    _dump_topic(ConversationTopic(topic=topic, stance=stance)),
                    ex=self.ttl_seconds,
                )
                pipe.set(
                    self._history_key(conversation_id),
                    _dump_history(history),
                    ex=self.ttl_seconds,
                )
                await pipe.execute()
        except RedisError as e:
            logger.error(
                "conversation_create_failed",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise StoreUnavailableError("create_conversation", conversation_id) from e

        logger.info("conversation_created", conversation_id=conversation_id)
        return history

    async def get_topic(self, conversation_id: str) -> Optional[ConversationTopic]:
        raw = await self._get(self._topic_key(conversation_id), "get_topic", conversation_id)
        if raw is None:
            return None
        try:
            return _load_topic(raw)
        except (ValidationError, ValueError) as e:
            raise StoreUnavailableError(
                "get_topic", conversation_id, {"reason": "corrupt topic record"}
            ) from e

    async def get_history(
        self, conversation_id: str
    ) -> Optional[List[ConversationMessage]]:
        raw = await self._get(
            self._history_key(conversation_id), "get_history", conversation_id
        )
        if raw is None:
            return None
        try:
            return _load_history(raw)
        except (ValidationError, ValueError) as e:
            raise StoreUnavailableError(
                "get_history", conversation_id, {"reason": "corrupt history record"}
            ) from e

    async def append_message(
        self, conversation_id: str, message: ConversationMessage
    ) -> List[ConversationMessage]:
        history = await self.get_history(conversation_id) or []
        history.append(message)

        client = self.redis_resource.get_client()
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(
                    self._history_key(conversation_id),
                    _dump_history(history),
                    ex=self.ttl_seconds,
                )
                # Keep the topic record on the same expiry clock as the history
                pipe.expire(self._topic_key(conversation_id), self.ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            logger.error(
                "conversation_append_failed",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise StoreUnavailableError("append_message", conversation_id) from e

        logger.debug(
            "conversation_message_appended",
            conversation_id=conversation_id,
            role=message.role,
            history_length=len(history),
        )
        return history

    async def ping(self) -> bool:
        try:
            return bool(await self.redis_resource.get_client().ping())
        except RedisError:
            return False

    async def _get(
        self, key: str, operation: str, conversation_id: str
    ) -> Optional[str]:
        try:
            return await self.redis_resource.get_client().get(key)
        except RedisError as e:
            logger.error(
                "conversation_read_failed",
                conversation_id=conversation_id,
                operation=operation,
                error=str(e),
            )
            raise StoreUnavailableError(operation, conversation_id) from e


class InMemoryConversationStore(ConversationStore):
    """Process-local store with lazy expiry.

    Records are kept serialized, as Redis would keep them, next to a deadline
    on the ``clock``. Every read and write awaits once so that interleavings
    match those of a networked store.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(ttl_seconds)
        self._clock = clock
        self._topics: Dict[str, Tuple[str, float]] = {}
        self._histories: Dict[str, Tuple[str, float]] = {}

    def _deadline(self) -> float:
        return self._clock() + self.ttl_seconds

    def _read(self, records: Dict[str, Tuple[str, float]], key: str) -> Optional[str]:
        entry = records.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if self._clock() >= expires_at:
            del records[key]
            return None
        return raw

    async def create_conversation(
        self,
        conversation_id: str,
        topic: str,
        stance: str,
        initial_message: ConversationMessage,
    ) -> List[ConversationMessage]:
        history = [initial_message]
        await asyncio.sleep(0)
        deadline = self._deadline()
        self._topics[conversation_id] = (
            _dump_topic(ConversationTopic(topic=topic, stance=stance)),
            deadline,
        )
        self._histories[conversation_id] = (_dump_history(history), deadline)
        logger.info("conversation_created", conversation_id=conversation_id)
        return history

    async def get_topic(self, conversation_id: str) -> Optional[ConversationTopic]:
        await asyncio.sleep(0)
        raw = self._read(self._topics, conversation_id)
        return _load_topic(raw) if raw is not None else None

    async def get_history(
        self, conversation_id: str
    ) -> Optional[List[ConversationMessage]]:
        await asyncio.sleep(0)
        raw = self._read(self._histories, conversation_id)
        return _load_history(raw) if raw is not None else None

    async def append_message(
        self, conversation_id: str, message: ConversationMessage
    ) -> List[ConversationMessage]:
        history = await self.get_history(conversation_id) or []
        history.append(message)

        await asyncio.sleep(0)
        deadline = self._deadline()
        self._histories[conversation_id] = (_dump_history(history), deadline)
        topic = self._read(self._topics, conversation_id)
        if topic is not None:
            self._topics[conversation_id] = (topic, deadline)
        return history

    async def ping(self) -> bool:
        return True
