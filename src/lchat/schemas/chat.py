from collections.abc import Iterable
from datetime import timedelta
from decimal import Decimal
from enum import Enum

from lchat.schemas.settings import ChatSettings
from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny


class MessageRole(str, Enum):
    SYSTEM = 'system'
    HUMAN = 'human'
    AI = 'ai'


class Message(BaseModel):
    """A single chat message.

    Attributes
        content: Text content of the message
        role: Author of the message
    """
    content: str = Field(..., description='Text content of the message')
    role: MessageRole = Field(MessageRole.HUMAN, description='Author of the message')

    model_config = ConfigDict(frozen=True)

    @classmethod
    def system(cls, content: str) -> 'Message':
        return cls(content=content, role=MessageRole.SYSTEM)

    @classmethod
    def human(cls, content: str) -> 'Message':
        return cls(content=content, role=MessageRole.HUMAN)

    @classmethod
    def ai(cls, content: str) -> 'Message':
        return cls(content=content, role=MessageRole.AI)


class ChatRequest(BaseModel):
    """Ordered messages sent to a chat model."""
    messages: tuple[Message, ...] = Field(..., description='Conversation so far, oldest first')

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_text(cls, text: str) -> 'ChatRequest':
        return cls(messages=(Message.human(text),))


class Usage(BaseModel):
    """Resource consumption of one or more generation calls.

    ``Usage()`` is the zero element; instances add component-wise.
    """
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    messages: int = Field(0, ge=0)
    price_in_usd: Decimal = Field(Decimal(0), ge=0)
    time: timedelta = Field(timedelta(0), ge=timedelta(0))

    model_config = ConfigDict(frozen=True)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: 'Usage') -> 'Usage':
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            messages=self.messages + other.messages,
            price_in_usd=self.price_in_usd + other.price_in_usd,
            time=self.time + other.time,
        )


class ChatResponse(BaseModel):
    """Result of a single generation.

    Attributes
        messages: Request messages followed by the generated message
        used_settings: Fully resolved settings the call was made with
        usage: Usage of this call only
    """
    messages: list[Message]
    used_settings: SerializeAsAny[ChatSettings]
    usage: Usage

    @property
    def last_message(self) -> Message:
        return self.messages[-1]

    def __str__(self) -> str:
        return self.last_message.content


_PROMPT_PREFIXES = {
    MessageRole.SYSTEM: '',
    MessageRole.HUMAN: 'Human: ',
    MessageRole.AI: 'AI: ',
}


def to_simple_prompt(messages: Iterable[Message]) -> str:
    """Flatten a conversation into a single completion prompt.

    >>> to_simple_prompt([Message.system('Be brief.'), Message.human('Hi'), Message.ai('Hello')])
    'Be brief.\\nHuman: Hi\\nAI: Hello'
    """
    return '\n'.join(f'{_PROMPT_PREFIXES[m.role]}{m.content}' for m in messages)
