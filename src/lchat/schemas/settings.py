"""Chat settings and their three-tier resolution.

Settings are layered request > model > provider. Every field is optional on
each tier; resolution takes the first non-null value per field and then
checks that the fields a backend cannot work without are populated.
"""
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, Field

T = TypeVar('T', bound='ChatSettings')


class MissingSettingError(ValueError):
    """Raised when a required setting is unset on every tier."""

    def __init__(self, field: str, settings_cls: type):
        self.field = field
        super().__init__(f'{settings_cls.__name__}.{field} is not set on the request, model or provider')


class ChatSettings(BaseModel):
    """Settings shared by every chat backend.

    Attributes
        stop_sequences: Sequences where generation stops
        user: End-user identifier forwarded to the backend
    """
    stop_sequences: list[str] | None = Field(None, description='Sequences where generation stops')
    user: str | None = Field(None, description='End-user identifier forwarded to the backend')

    REQUIRED: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def default(cls):
        return cls(stop_sequences=[], user='')


class OpenAiChatSettings(ChatSettings):
    max_tokens: int | None = Field(None, gt=0)
    temperature: float | None = Field(None, ge=0, le=2)
    top_p: float | None = Field(None, ge=0, le=1)

    REQUIRED: ClassVar[tuple[str, ...]] = ('temperature', 'top_p')

    @classmethod
    def default(cls):
        return cls(stop_sequences=[], user='', temperature=1.0, top_p=1.0)


class BedrockChatSettings(ChatSettings):
    max_tokens: int | None = Field(None, gt=0)
    temperature: float | None = Field(None, ge=0, le=5)
    top_p: float | None = Field(None, ge=0, le=1)
    top_k: int | None = Field(None, ge=0)

    REQUIRED: ClassVar[tuple[str, ...]] = ('max_tokens', 'temperature', 'top_p', 'top_k')

    @classmethod
    def default(cls):
        return cls(stop_sequences=[], user='', max_tokens=2048, temperature=0.7, top_p=0.9, top_k=0)


def merge_settings(*tiers: BaseModel | None) -> dict[str, Any]:
    """Left-biased merge of settings tiers.

    Tiers are given highest precedence first. ``None`` tiers and ``None``
    field values are skipped.

    >>> merge_settings(None, ChatSettings(user='a'), ChatSettings(user='b', stop_sequences=['x']))
    {'user': 'a', 'stop_sequences': ['x']}
    """
    merged: dict[str, Any] = {}
    for tier in tiers:
        if tier is None:
            continue
        for name in type(tier).model_fields:
            value = getattr(tier, name)
            if value is not None and name not in merged:
                merged[name] = value
    return merged


def resolve_settings(
    settings_cls: type[T],
    request: ChatSettings | None = None,
    model: ChatSettings | None = None,
    provider: ChatSettings | None = None,
) -> T:
    """Resolve the effective settings for a single call.

    Args
        settings_cls: Backend settings type to produce
        request: Per-request settings (highest precedence)
        model: Per-model settings
        provider: Provider defaults (lowest precedence)

    Returns
        A new ``settings_cls`` instance with every required field populated

    Raises
        MissingSettingError: If a required field is unset on every tier
    """
    merged = merge_settings(request, model, provider)
    values = {name: merged[name] for name in settings_cls.model_fields if name in merged}
    for name in settings_cls.REQUIRED:
        if values.get(name) is None:
            raise MissingSettingError(name, settings_cls)
    return settings_cls(**values)
