"""Settings management for the Libb-Chat adapters.

Optional environment variables:
- OPENAI_API_KEY: OpenAI API key (required for OpenAI models)
- OPENAI_BASE_URL: Alternative OpenAI-compatible endpoint
- AWS_REGION / AWS_DEFAULT_REGION: Region used for Bedrock runtime calls
- LCHAT_HTTP_TIMEOUT: Client-level request ceiling in seconds
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


def _aws_region() -> str:
    return os.getenv('AWS_REGION') or os.getenv('AWS_DEFAULT_REGION') or 'us-east-1'


class Settings(BaseModel):

    openai_api_key: str | None = Field(default_factory=lambda: os.getenv('OPENAI_API_KEY'))
    openai_base_url: str | None = Field(default_factory=lambda: os.getenv('OPENAI_BASE_URL'))

    aws_region: str = Field(default_factory=_aws_region)

    http_timeout: float = Field(default_factory=lambda: float(os.getenv('LCHAT_HTTP_TIMEOUT', '300')), gt=0)

    model_config = ConfigDict(case_sensitive=True, extra='ignore', validate_default=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns
        Settings instance with validated configuration
    """
    return Settings()
