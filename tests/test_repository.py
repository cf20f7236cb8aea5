"""Tests for conversation stores (in-memory and Redis-backed)."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from api.features.debate.exceptions import StoreUnavailableError
from api.features.debate.models import ConversationMessage, ConversationTopic
from api.features.debate.repository import RedisConversationStore


def user(text):
    return ConversationMessage.from_user(text)


def agent(text):
    return ConversationMessage.from_agent(text)


class TestInMemoryStore:
    """Behavior of the in-process store."""

    @pytest.mark.asyncio
    async def test_round_trip_after_create(self, store):
        initial = user("Debate: Cats. Take side: yes")
        await store.create_conversation("c1", "Cats", "yes", initial)

        assert await store.get_history("c1") == [initial]
        assert await store.get_topic("c1") == ConversationTopic(topic="Cats", stance="yes")

    @pytest.mark.asyncio
    async def test_missing_conversation_is_none_not_empty(self, store):
        assert await store.get_history("nope") is None
        assert await store.get_topic("nope") is None

    @pytest.mark.asyncio
    async def test_append_grows_by_one_and_keeps_order(self, store):
        await store.create_conversation("c1", "Cats", "yes", user("first"))
        before = await store.get_history("c1")

        returned = await store.append_message("c1", agent("second"))
        after = await store.get_history("c1")

        assert len(after) == len(before) + 1
        assert after[:-1] == before
        assert after[-1] == agent("second")
        assert returned == after

    @pytest.mark.asyncio
    async def test_append_to_unknown_id_starts_from_empty(self, store):
        history = await store.append_message("ghost", user("hello"))

        assert history == [user("hello")]
        # Only the history record exists; there is no topic to pair it with
        assert await store.get_topic("ghost") is None

    @pytest.mark.asyncio
    async def test_trimmed_history_returns_last_n(self, store):
        await store.create_conversation("c1", "Cats", "yes", user("m0"))
        for i in range(1, 15):
            await store.append_message("c1", user(f"m{i}"))

        trimmed = await store.trimmed_history("c1", 10)

        assert [m.text for m in trimmed] == [f"m{i}" for i in range(5, 15)]

    @pytest.mark.asyncio
    async def test_trimmed_history_is_idempotent_and_read_only(self, store):
        await store.create_conversation("c1", "Cats", "yes", user("m0"))
        for i in range(1, 4):
            await store.append_message("c1", user(f"m{i}"))

        first = await store.trimmed_history("c1", 2)
        second = await store.trimmed_history("c1", 2)

        assert first == second
        assert len(await store.get_history("c1")) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_messages", [0, -1, -3])
    async def test_trimmed_history_with_non_positive_limit_is_empty(
        self, store, max_messages
    ):
        await store.create_conversation("c1", "Cats", "yes", user("m0"))
        await store.append_message("c1", agent("m1"))

        assert await store.trimmed_history("c1", max_messages) == []

    @pytest.mark.asyncio
    async def test_trimmed_history_of_unknown_id_is_empty(self, store):
        assert await store.trimmed_history("nope") == []

    @pytest.mark.asyncio
    async def test_records_expire_together(self, store, clock):
        await store.create_conversation("c1", "Cats", "yes", user("m0"))

        clock.advance(86400)

        assert await store.get_history("c1") is None
        assert await store.get_topic("c1") is None

    @pytest.mark.asyncio
    async def test_append_refreshes_expiry_of_both_records(self, store, clock):
        await store.create_conversation("c1", "Cats", "yes", user("m0"))

        clock.advance(86000)
        await store.append_message("c1", user("m1"))
        clock.advance(86000)

        assert len(await store.get_history("c1")) == 2
        assert await store.get_topic("c1") is not None

    @pytest.mark.asyncio
    async def test_concurrent_appends_lose_an_update(self, store):
        """Read-modify-write appends are not atomic: the later write wins.

        This documents an accepted race, not desired behavior.
        """
        await store.create_conversation("c1", "Cats", "yes", user("m0"))

        await asyncio.gather(
            store.append_message("c1", user("a")),
            store.append_message("c1", user("b")),
        )

        history = await store.get_history("c1")
        assert len(history) == 2
        assert history[-1].text in {"a", "b"}

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def set(self, key, value, ex=None):
        self.commands.append(("set", key, value, ex))
        return self

    def expire(self, key, seconds):
        self.commands.append(("expire", key, seconds))
        return self

    async def execute(self):
        if self.client.fail_writes:
            raise RedisConnectionError("connection refused")
        for command in self.commands:
            if command[0] == "set":
                _, key, value, ex = command
                self.client.data[key] = value
                self.client.ttls[key] = ex
            elif command[1] in self.client.data:
                self.client.ttls[command[1]] = command[2]
        self.client.executed.append(list(self.commands))
        return [True] * len(self.commands)


class FakeRedisClient:
    """Dict-backed stand-in for the few redis.asyncio calls the store makes."""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.executed = []
        self.fail_writes = False

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def get(self, key):
        return self.data.get(key)

    async def ping(self):
        return True


@pytest.fixture
def redis_client():
    return FakeRedisClient()


@pytest.fixture
def redis_store(redis_client):
    resource = MagicMock()
    resource.get_client.return_value = redis_client
    return RedisConversationStore(redis_resource=resource, ttl_seconds=86400)


class TestRedisStore:
    """Key layout, payload shape and error translation of the Redis store."""

    @pytest.mark.asyncio
    async def test_create_writes_both_records_in_one_transaction(
        self, redis_store, redis_client
    ):
        await redis_store.create_conversation(
            "c1", "The earth is flat", "You agree", user("Debate: ...")
        )

        assert len(redis_client.executed) == 1
        assert redis_client.ttls == {
            "conversation:topic:c1": 86400,
            "conversation:history:c1": 86400,
        }
        assert json.loads(redis_client.data["conversation:topic:c1"]) == {
            "topic": "The earth is flat",
            "stance": "You agree",
        }
        assert json.loads(redis_client.data["conversation:history:c1"]) == [
            {"role": "user", "text": "Debate: ..."}
        ]

    @pytest.mark.asyncio
    async def test_round_trip(self, redis_store):
        initial = user("Debate: Cats. Take side: yes")
        await redis_store.create_conversation("c1", "Cats", "yes", initial)

        assert await redis_store.get_history("c1") == [initial]
        assert await redis_store.get_topic("c1") == ConversationTopic(
            topic="Cats", stance="yes"
        )

    @pytest.mark.asyncio
    async def test_append_rewrites_history_and_refreshes_topic_expiry(
        self, redis_store, redis_client
    ):
        await redis_store.create_conversation("c1", "Cats", "yes", user("m0"))
        redis_client.ttls["conversation:topic:c1"] = 10

        await redis_store.append_message("c1", agent("m1"))

        assert json.loads(redis_client.data["conversation:history:c1"]) == [
            {"role": "user", "text": "m0"},
            {"role": "agent", "text": "m1"},
        ]
        assert redis_client.ttls["conversation:topic:c1"] == 86400
        assert redis_client.ttls["conversation:history:c1"] == 86400

    @pytest.mark.asyncio
    async def test_custom_key_prefixes(self, redis_client):
        resource = MagicMock()
        resource.get_client.return_value = redis_client
        store = RedisConversationStore(
            redis_resource=resource,
            ttl_seconds=60,
            topic_key_prefix="debate:t:",
            history_key_prefix="debate:h:",
        )

        await store.create_conversation("c1", "Cats", "yes", user("m0"))

        assert set(redis_client.data) == {"debate:t:c1", "debate:h:c1"}
        assert set(redis_client.ttls.values()) == {60}

    @pytest.mark.asyncio
    async def test_miss_is_none(self, redis_store):
        assert await redis_store.get_history("nope") is None
        assert await redis_store.get_topic("nope") is None
        assert await redis_store.trimmed_history("nope") == []

    @pytest.mark.asyncio
    async def test_create_failure_raises_store_unavailable(
        self, redis_store, redis_client
    ):
        redis_client.fail_writes = True

        with pytest.raises(StoreUnavailableError) as exc_info:
            await redis_store.create_conversation("c1", "Cats", "yes", user("m0"))

        assert exc_info.value.error_code == "STORE_UNAVAILABLE"
        assert exc_info.value.details["operation"] == "create_conversation"
        assert redis_client.data == {}

    @pytest.mark.asyncio
    async def test_read_failure_raises_store_unavailable(self, redis_store, redis_client):
        redis_client.get = AsyncMock(side_effect=RedisTimeoutError("timed out"))

        with pytest.raises(StoreUnavailableError):
            await redis_store.get_history("c1")
        with pytest.raises(StoreUnavailableError):
            await redis_store.get_topic("c1")

    @pytest.mark.asyncio
    async def test_corrupt_history_raises_store_unavailable(
        self, redis_store, redis_client
    ):
        redis_client.data["conversation:history:c1"] = "{not json"

        with pytest.raises(StoreUnavailableError) as exc_info:
            await redis_store.get_history("c1")

        assert exc_info.value.details["reason"] == "corrupt history record"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["{not json", '{"topic": "Cats"}', "[]"])
    async def test_corrupt_topic_raises_store_unavailable(
        self, redis_store, redis_client, raw
    ):
        redis_client.data["conversation:topic:c1"] = raw

        with pytest.raises(StoreUnavailableError) as exc_info:
            await redis_store.get_topic("c1")

        assert exc_info.value.error_code == "STORE_UNAVAILABLE"
        assert exc_info.value.details["reason"] == "corrupt topic record"

    @pytest.mark.asyncio
    async def test_ping_failure_is_false(self, redis_store, redis_client):
        redis_client.ping = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await redis_store.ping() is False
