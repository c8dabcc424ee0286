"""
Shared fixtures.

Provider HTTP traffic goes through httpx.MockTransport; FakeLLM answers each
call from a per-provider queue and records what was sent.
"""

import json
from typing import Any, Dict, List, Optional, Union

import httpx
import pytest

from concierge.agents.concierge_agent import ConciergeAgent
from concierge.config import Settings
from concierge.interfaces.user_config_store import UserConfigStore
from concierge.llm.providers import ProviderClient


def openai_reply(text: Optional[str]) -> httpx.Response:
    return httpx.Response(200, json={
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4.1-nano-2025-04-14",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": text},
            "finish_reason": "stop",
        }],
    })


def gemini_reply(text: str) -> httpx.Response:
    return httpx.Response(200, json={
        "candidates": [{
            "content": {"role": "model", "parts": [{"text": text}]},
            "finishReason": "STOP",
        }],
    })


Reply = Union[httpx.Response, Exception]


class FakeLLM:
    """Queued replies per provider; records every outbound call"""

    def __init__(self):
        self.replies: Dict[str, List[Reply]] = {"openai": [], "gemini": []}
        self.calls: List[Dict[str, Any]] = []

    def queue(self, provider: str, *replies: Reply):
        self.replies[provider].extend(replies)

    def calls_to(self, provider: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["provider"] == provider]

    def handler(self, request: httpx.Request) -> httpx.Response:
        provider = "gemini" if "generativelanguage" in request.url.host else "openai"
        self.calls.append({
            "provider": provider,
            "url": str(request.url),
            "headers": dict(request.headers),
            "body": json.loads(request.content),
        })
        queue = self.replies[provider]
        if not queue:
            raise AssertionError(f"unexpected {provider} call")
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def provider_client(fake_llm) -> ProviderClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_llm.handler))
    return ProviderClient(http_client=http_client, timeout=60.0)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        OPENAI_API_KEY="sk-system-openai",
        GEMINI_API_KEY="system-gemini-key",
        DEFAULT_MODEL="gemini-2.5-flash",
        FALLBACK_OPENAI_MODEL="gpt-4.1-nano",
        FALLBACK_GEMINI_MODEL="gemini-2.5-flash",
        REDIS_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def store() -> UserConfigStore:
    return UserConfigStore(enabled=False)


@pytest.fixture
def agent(settings, store, provider_client) -> ConciergeAgent:
    return ConciergeAgent(settings, store, provider_client)
