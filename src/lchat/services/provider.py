"""Provider-agnostic chat model interface.

Each backend supplies a provider (client, default settings, usage total) and
one or more chat models bound to it. Models and providers each compose their
own ``UsageTracker``.
"""
from typing import Protocol, runtime_checkable

from lchat.schemas.chat import ChatRequest, ChatResponse
from lchat.schemas.settings import ChatSettings
from lchat.services.usage import UsageTracker


@runtime_checkable
class ChatModel(Protocol):
    id: str
    settings: ChatSettings | None
    usage: UsageTracker

    async def generate(self, request: ChatRequest, settings: ChatSettings | None = None) -> ChatResponse:
        """Run a single chat completion and return the extended conversation."""
        ...


def require_request(request: ChatRequest | None) -> ChatRequest:
    if request is None:
        raise ValueError('request is required')
    return request
