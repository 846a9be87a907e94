"""Static price and context window tables.

Prices are USD per 1K tokens, taken from the providers' public pricing pages
(OpenAI standard tier, Bedrock on-demand us-east-1).
"""
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)

# model id -> (prompt price, completion price)
PRICING: dict[str, tuple[Decimal, Decimal]] = {
    'gpt-3.5-turbo': (Decimal('0.0005'), Decimal('0.0015')),
    'gpt-3.5-turbo-16k': (Decimal('0.003'), Decimal('0.004')),
    'gpt-4': (Decimal('0.03'), Decimal('0.06')),
    'gpt-4-32k': (Decimal('0.06'), Decimal('0.12')),
    'gpt-4-turbo': (Decimal('0.01'), Decimal('0.03')),
    'gpt-4o': (Decimal('0.0025'), Decimal('0.01')),
    'gpt-4o-mini': (Decimal('0.00015'), Decimal('0.0006')),
    'cohere.command-text-v14': (Decimal('0.0015'), Decimal('0.002')),
    'cohere.command-light-text-v14': (Decimal('0.0003'), Decimal('0.0006')),
}

CONTEXT_LENGTHS: dict[str, int] = {
    'gpt-3.5-turbo': 16385,
    'gpt-3.5-turbo-16k': 16385,
    'gpt-4': 8192,
    'gpt-4-32k': 32768,
    'gpt-4-turbo': 128000,
    'gpt-4o': 128000,
    'gpt-4o-mini': 128000,
    'cohere.command-text-v14': 4096,
    'cohere.command-light-text-v14': 4096,
}


def calculate_price_in_usd(model_id: str, prompt_tokens: int = 0, completion_tokens: int = 0) -> Decimal:
    """Price a call from its token counts. Unknown models are priced at zero.

    >>> calculate_price_in_usd('gpt-4', prompt_tokens=1000, completion_tokens=500)
    Decimal('0.06')
    """
    pricing = PRICING.get(model_id)
    if pricing is None:
        logger.warning(f'No pricing known for {model_id}, reporting $0')
        return Decimal(0)
    prompt_price, completion_price = pricing
    return (Decimal(prompt_tokens) * prompt_price + Decimal(completion_tokens) * completion_price) / 1000


def get_context_length(model_id: str) -> int | None:
    return CONTEXT_LENGTHS.get(model_id)
