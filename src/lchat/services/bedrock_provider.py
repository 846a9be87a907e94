import asyncio
import json
import logging
import time
from datetime import timedelta
from typing import Any

import boto3
from botocore.config import Config
from lchat.config import get_settings
from lchat.schemas.chat import ChatRequest, ChatResponse, Message, Usage, to_simple_prompt
from lchat.schemas.settings import BedrockChatSettings, ChatSettings, resolve_settings
from lchat.services.pricing import calculate_price_in_usd
from lchat.services.provider import require_request
from lchat.services.usage import UsageTracker, record_usage

logger = logging.getLogger(__name__)

INPUT_TOKEN_HEADER = 'x-amzn-bedrock-input-token-count'
OUTPUT_TOKEN_HEADER = 'x-amzn-bedrock-output-token-count'


class BedrockProvider:
    """Shared Bedrock runtime client, default settings and usage total"""

    def __init__(
        self,
        region_name: str | None = None,
        chat_settings: BedrockChatSettings | None = None,
        client=None,
    ):
        settings = get_settings()

        self.chat_settings = chat_settings or BedrockChatSettings.default()
        self.usage = UsageTracker('bedrock')
        self.region_name = region_name or settings.aws_region

        if client is None:
            client = boto3.client(
                'bedrock-runtime',
                region_name=self.region_name,
                config=Config(read_timeout=settings.http_timeout, retries={'max_attempts': 0}),
            )
        self.client = client

    async def invoke_model(self, model_id: str, body: dict) -> tuple[Any, dict[str, int]]:
        """Invoke a Bedrock model.

        The blocking SDK call runs in a worker thread.

        Returns
            Tuple of (decoded JSON body, token counts). Token counts come from
            the Bedrock response headers and default to 0 when absent.
        """
        response = await asyncio.to_thread(
            self.client.invoke_model,
            modelId=model_id,
            body=json.dumps(body),
            contentType='application/json',
            accept='application/json',
        )
        payload = json.loads(response['body'].read())

        headers = response.get('ResponseMetadata', {}).get('HTTPHeaders', {})
        counts = {
            'input': int(headers.get(INPUT_TOKEN_HEADER, 0)),
            'output': int(headers.get(OUTPUT_TOKEN_HEADER, 0)),
        }
        return payload, counts


class CohereCommandChatModel:
    """Cohere Command text generation through Bedrock"""

    def __init__(self, provider: BedrockProvider, id: str, settings: ChatSettings | None = None):
        if provider is None:
            raise ValueError('provider is required')
        if not id:
            raise ValueError('id is required')

        self.provider = provider
        self.id = id
        self.settings = settings
        self.usage = UsageTracker(id)

    def _build_body(self, request: ChatRequest, used_settings: BedrockChatSettings) -> dict:
        body = {
            'prompt': to_simple_prompt(request.messages),
            'max_tokens': used_settings.max_tokens,
            'temperature': used_settings.temperature,
            'p': used_settings.top_p,
            'k': used_settings.top_k,
        }
        if used_settings.stop_sequences:
            body['stop_sequences'] = used_settings.stop_sequences
        return body

    async def generate(self, request: ChatRequest, settings: ChatSettings | None = None) -> ChatResponse:
        """Flatten the conversation into a prompt, invoke the model once and append its text"""
        request = require_request(request)

        start = time.perf_counter()
        used_settings = resolve_settings(
            BedrockChatSettings,
            request=settings,
            model=self.settings,
            provider=self.provider.chat_settings,
        )
        body = self._build_body(request, used_settings)

        logger.info(f'Bedrock request - Model: {self.id}, Messages: {len(request.messages)}, '
                    f'Prompt chars: {len(body["prompt"]):,}')
        logger.debug(f'Invoking {self.id} with max_tokens={body["max_tokens"]}, '
                     f'temperature={body["temperature"]}, p={body["p"]}, k={body["k"]}')

        try:
            response, counts = await self.provider.invoke_model(self.id, body)
        except Exception as e:
            logger.error(f'Bedrock invocation failed for {self.id}: {e}')
            raise

        text = _generated_text(response)

        prompt_tokens = counts.get('input', 0)
        completion_tokens = counts.get('output', 0)
        usage = Usage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            messages=1,
            price_in_usd=calculate_price_in_usd(self.id, prompt_tokens, completion_tokens),
            time=timedelta(seconds=time.perf_counter() - start),
        )
        record_usage(usage, self.usage, self.provider.usage)

        return ChatResponse(
            messages=[*request.messages, Message.ai(text)],
            used_settings=used_settings,
            usage=usage,
        )


class CommandTextV14Model(CohereCommandChatModel):

    def __init__(self, provider: BedrockProvider, settings: ChatSettings | None = None):
        super().__init__(provider, 'cohere.command-text-v14', settings)


class CommandLightTextV14Model(CohereCommandChatModel):

    def __init__(self, provider: BedrockProvider, settings: ChatSettings | None = None):
        super().__init__(provider, 'cohere.command-light-text-v14', settings)


def _generated_text(response: Any) -> str:
    """Return ``generations[0].text`` or an empty string when the path is missing"""
    if not isinstance(response, dict):
        return ''
    generations = response.get('generations')
    if not isinstance(generations, list) or not generations or not isinstance(generations[0], dict):
        return ''
    text = generations[0].get('text')
    return text if isinstance(text, str) else ''
