# printdesk/services/gpt.py

from dataclasses import dataclass, field
from typing import Optional, Protocol

from openai import AsyncOpenAI
from printdesk.config import settings

# OpenAI client
client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: str = "{}"       # raw JSON from the model


@dataclass
class ModelReply:
    text: Optional[str] = None
    tool_calls: list[ToolCall] = field(default_factory=list)

    def as_message(self) -> dict:
        """Assistant message to put back into the conversation."""
        message = {"role": "assistant", "content": self.text}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class ChatModel(Protocol):
    async def complete(self, messages: list[dict], tools: list[dict]) -> ModelReply:
        ...


class OpenAIChatModel:
    """Chat completions with function tools."""

    def __init__(self, model: str = settings.OPENAI_MODEL, openai_client: AsyncOpenAI = None):
        self.model = model
        self.client = openai_client or client

    async def complete(self, messages: list[dict], tools: list[dict]) -> ModelReply:
        kwargs = {"model": self.model, "messages": messages}
        if tools:
            kwargs["tools"] = tools

        response = await self.client.chat.completions.create(**kwargs)
        message = response.choices[0].message

        calls = [
            ToolCall(id=c.id, name=c.function.name, arguments=c.function.arguments or "{}")
            for c in (message.tool_calls or [])
        ]
        return ModelReply(text=message.content, tool_calls=calls)


def get_chat_model() -> ChatModel:
    """FastAPI dependency; tests override it with a scripted model."""
    return OpenAIChatModel()
