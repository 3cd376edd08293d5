# printdesk/services/agent.py

from typing import List

from printdesk.config import settings
from printdesk.schemas.chat import ChatTurn
from printdesk.services.assistant import AGENT_SYS_PROMPT
from printdesk.services.gpt import ChatModel, ModelReply
from printdesk.services.tools import ToolContext, ToolRegistry, registry as default_registry

ROLE_MAP = {"user": "user", "model": "assistant", "assistant": "assistant"}


def history_to_messages(history: List[ChatTurn]) -> list[dict]:
    """[{role, parts:[{text}]}] -> chat messages; "model" turns become "assistant"."""
    return [{"role": ROLE_MAP[turn.role], "content": turn.text} for turn in history]


class ToolCallDispatcher:
    """
    Bounded agent loop between the chat model and the tool catalog.

    The model is asked for the next step; requested tools are executed and
    their text results fed back; this repeats until the model answers with
    text or max_iterations tool rounds have run. After the last round the
    latest reply's text is returned as is, without running any further
    tool calls it may request.
    """

    def __init__(
        self,
        model: ChatModel,
        context: ToolContext,
        registry: ToolRegistry = default_registry,
        max_iterations: int = settings.AGENT_MAX_ITERATIONS,
        system_prompt: str = AGENT_SYS_PROMPT,
    ):
        self.model = model
        self.context = context
        self.registry = registry
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt
        self.iterations = 0

    @property
    def log(self):
        return self.context.log

    async def run(self, history: List[ChatTurn]) -> str:
        messages = [{"role": "system", "content": self.system_prompt.strip()}]
        messages.extend(history_to_messages(history))
        tools = self.registry.schemas()

        reply: ModelReply = await self.model.complete(messages, tools)

        while reply.tool_calls and self.iterations < self.max_iterations:
            self.iterations += 1
            messages.append(reply.as_message())

            for call in reply.tool_calls:
                if self.log:
                    await self.log.log_info("agent", f"Model calls {call.name}", {
                        "iteration": self.iterations, "arguments": call.arguments
                    })
                result = await self.registry.dispatch(call.name, call.arguments, self.context)
                messages.append({"role": "tool", "tool_call_id": call.id, "content": result})

            reply = await self.model.complete(messages, tools)

        if reply.tool_calls and self.log:
            await self.log.log_warning("agent", "Iteration limit reached, pending tool calls dropped", {
                "iterations": self.iterations, "pending": [c.name for c in reply.tool_calls]
            })

        return reply.text or ""
