import logging
import time
from collections.abc import Iterable
from datetime import timedelta

import tiktoken
from lchat.config import get_settings
from lchat.schemas.chat import ChatRequest, ChatResponse, Message, MessageRole, Usage
from lchat.schemas.settings import ChatSettings, OpenAiChatSettings, resolve_settings
from lchat.services.pricing import calculate_price_in_usd, get_context_length
from lchat.services.provider import require_request
from lchat.services.usage import UsageTracker, record_usage
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

_ROLES = {
    MessageRole.SYSTEM: 'system',
    MessageRole.HUMAN: 'user',
    MessageRole.AI: 'assistant',
}

FALLBACK_ENCODING = 'cl100k_base'


class OpenAiProvider:
    """Shared OpenAI client, default settings and usage total for OpenAI chat models"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        chat_settings: OpenAiChatSettings | None = None,
        client: AsyncOpenAI | None = None,
    ):
        settings = get_settings()

        self.chat_settings = chat_settings or OpenAiChatSettings.default()
        self.usage = UsageTracker('openai')

        if client is None:
            api_key = api_key or settings.openai_api_key
            if not api_key:
                raise ValueError('OpenAI API key not configured')
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url or settings.openai_base_url,
                timeout=timeout or settings.http_timeout,
                max_retries=0,
            )
        self.client = client


class OpenAiChatModel:
    """Chat model backed by the OpenAI Chat Completions API"""

    def __init__(self, provider: OpenAiProvider, id: str, settings: ChatSettings | None = None):
        if provider is None:
            raise ValueError('provider is required')
        if not id:
            raise ValueError('id is required')

        self.provider = provider
        self.id = id
        self.settings = settings
        self.usage = UsageTracker(id)
        self._functions: list[dict] = []
        self._encoding: tiktoken.Encoding | None = None

    @property
    def context_length(self) -> int | None:
        return get_context_length(self.id)

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            try:
                self._encoding = tiktoken.encoding_for_model(self.id)
            except KeyError:
                logger.debug(f'No tiktoken encoding registered for {self.id}, using {FALLBACK_ENCODING}')
                self._encoding = tiktoken.get_encoding(FALLBACK_ENCODING)
        return self._encoding

    def add_global_functions(self, functions: Iterable[dict]) -> None:
        """Adds user-defined OpenAI functions to each request to the model."""
        if functions is None:
            raise ValueError('functions is required')
        self._functions = list(functions)

    def count_tokens(self, value: str | ChatRequest | Iterable[Message]) -> int:
        """Count tokens in a string, a request, or a sequence of messages.

        Message contents are joined by newlines before encoding.
        """
        if isinstance(value, ChatRequest):
            value = value.messages
        if not isinstance(value, str):
            value = '\n'.join(m.content for m in value)
        return len(self.encoding.encode(value))

    def calculate_price_in_usd(self, prompt_tokens: int, completion_tokens: int):
        return calculate_price_in_usd(self.id, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)

    def _build_params(self, request: ChatRequest, used_settings: OpenAiChatSettings) -> dict:
        params = {
            'model': self.id,
            'messages': [{'role': _ROLES[m.role], 'content': m.content} for m in request.messages],
            'temperature': used_settings.temperature,
            'top_p': used_settings.top_p,
        }
        if used_settings.max_tokens is not None:
            params['max_tokens'] = used_settings.max_tokens
        if used_settings.stop_sequences:
            params['stop'] = used_settings.stop_sequences
        if used_settings.user:
            params['user'] = used_settings.user
        if self._functions:
            params['functions'] = self._functions
            params['function_call'] = 'auto'
        return params

    async def generate(self, request: ChatRequest, settings: ChatSettings | None = None) -> ChatResponse:
        """Send one chat completion request and append the reply to the conversation"""
        request = require_request(request)

        start = time.perf_counter()
        used_settings = resolve_settings(
            OpenAiChatSettings,
            request=settings,
            model=self.settings,
            provider=self.provider.chat_settings,
        )
        params = self._build_params(request, used_settings)

        logger.info(f'OpenAI request - Model: {self.id}, Messages: {len(request.messages)}, '
                    f'Functions: {len(self._functions)}')
        logger.debug(f'Querying {self.id} with params: temperature={params["temperature"]}, '
                     f'top_p={params["top_p"]}, max_tokens={params.get("max_tokens", "unspecified")}')

        try:
            response = await self.provider.client.chat.completions.create(**params)
        except Exception as e:
            logger.error(f'OpenAI completion failed for {self.id}: {e}')
            raise

        text = _first_choice_text(response)

        prompt_tokens = getattr(response.usage, 'prompt_tokens', None) or 0
        completion_tokens = getattr(response.usage, 'completion_tokens', None) or 0
        usage = Usage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            messages=1,
            price_in_usd=self.calculate_price_in_usd(prompt_tokens, completion_tokens),
            time=timedelta(seconds=time.perf_counter() - start),
        )
        record_usage(usage, self.usage, self.provider.usage)

        return ChatResponse(
            messages=[*request.messages, Message.ai(text)],
            used_settings=used_settings,
            usage=usage,
        )


def _first_choice_text(response) -> str:
    choices = getattr(response, 'choices', None)
    if not choices:
        return ''
    message = getattr(choices[0], 'message', None)
    return getattr(message, 'content', None) or ''
