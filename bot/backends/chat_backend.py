"""Generation backends for debate replies.

The production backend talks to any OpenAI-compatible chat completion endpoint
through LangChain's ``ChatOpenAI`` (Hugging Face router by default).
"""
from __future__ import annotations

import time
from typing import Optional, Protocol, runtime_checkable

import structlog
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from api.features.debate.exceptions import BackendFailureError

logger = structlog.get_logger("debate.backend")


@runtime_checkable
class GenerationBackend(Protocol):
    """Accepts one free-text prompt and returns free text, or raises."""

    async def generate(self, prompt: str, *, temperature: float) -> str:
        ...


class ChatCompletionBackend:
    """Single-turn chat completion: the whole prompt goes in one user message."""

    def __init__(
        self,
        *,
        model: str,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        max_retries: int = 1,
    ):
        self.model = model
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self._llm: Optional[ChatOpenAI] = None

    def _get_llm(self) -> ChatOpenAI:
        # Built on first use so a missing key surfaces as a backend failure
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=self.model,
                base_url=self.base_url,
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._llm

    async def generate(self, prompt: str, *, temperature: float) -> str:
        start_time = time.time()
        try:
            llm = self._get_llm()
            response = await llm.ainvoke(
                [HumanMessage(content=prompt)], temperature=temperature
            )
        except Exception as e:
            raise BackendFailureError(str(e), self.model) from e

        content = response.content
        if not isinstance(content, str):
            raise BackendFailureError(
                "unexpected content type", self.model, {"type": type(content).__name__}
            )
        if not content.strip():
            raise BackendFailureError("empty completion", self.model)

        logger.info(
            "generation_completed",
            model=self.model,
            latency_ms=int((time.time() - start_time) * 1000),
            reply_chars=len(content),
        )
        return content
