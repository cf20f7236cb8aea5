"""
Shared pytest fixtures for the Debate Bot test suite.

Stores are in-memory with a controllable clock; the generation backend is an
AsyncMock so no test ever reaches a real model endpoint or Redis server.
"""

from unittest.mock import AsyncMock

import pytest

from api.features.debate.repository import InMemoryConversationStore
from api.features.debate.service import DebateService
from bot.pipeline.reply_generator import ReplyGenerator


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryConversationStore(ttl_seconds=86400, clock=clock)


@pytest.fixture
def backend():
    backend = AsyncMock()
    backend.generate = AsyncMock(return_value="  The horizon looks flat, doesn't it?  ")
    return backend


@pytest.fixture
def reply_generator(store, backend):
    return ReplyGenerator(store=store, backend=backend, temperature=0.7)


@pytest.fixture
def service(store, reply_generator):
    return DebateService(store=store, reply_generator=reply_generator)
