"""Test configuration.

All tests under tests/local/ run without network access: SDK clients are
replaced with in-memory fakes that count their calls.

Run all tests: pytest
"""
import io
import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from lchat.config import get_settings

logging.getLogger('botocore').setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def make_completion(content='Hello there', prompt_tokens=12, completion_tokens=5):
    """Build an object shaped like an OpenAI ChatCompletion"""
    message = SimpleNamespace(role='assistant', content=content, function_call=None)
    usage = SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens,
                            total_tokens=prompt_tokens + completion_tokens)
    return SimpleNamespace(
        id='chatcmpl-test',
        model='gpt-4',
        choices=[SimpleNamespace(index=0, message=message, finish_reason='stop')],
        usage=usage,
    )


def make_invoke_response(payload, input_tokens: int | None = None, output_tokens: int | None = None):
    """Build a dict shaped like a boto3 bedrock-runtime invoke_model response"""
    headers = {}
    if input_tokens is not None:
        headers['x-amzn-bedrock-input-token-count'] = str(input_tokens)
    if output_tokens is not None:
        headers['x-amzn-bedrock-output-token-count'] = str(output_tokens)
    return {
        'body': io.BytesIO(json.dumps(payload).encode()),
        'contentType': 'application/json',
        'ResponseMetadata': {'HTTPStatusCode': 200, 'HTTPHeaders': headers},
    }


@pytest.fixture
def openai_client():
    """Fake AsyncOpenAI client whose create() returns a canned completion"""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_completion())
    return client


@pytest.fixture
def bedrock_client():
    """Fake bedrock-runtime client returning one Cohere generation per call"""
    client = MagicMock()
    client.invoke_model = MagicMock(side_effect=lambda **kwargs: make_invoke_response(
        {'generations': [{'id': 'gen-1', 'text': ' Paris.', 'finish_reason': 'COMPLETE'}],
         'id': 'resp-1', 'prompt': json.loads(kwargs['body'])['prompt']},
        input_tokens=20, output_tokens=4))
    return client


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Keep environment overrides from leaking between tests"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def completion_factory():
    return make_completion


@pytest.fixture
def invoke_response_factory():
    return make_invoke_response
