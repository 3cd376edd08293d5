# printdesk/schemas/chat.py

from pydantic import BaseModel, Field
from typing import List, Literal, Optional

class Part(BaseModel):
    text: str = ""

class ChatTurn(BaseModel):
    role: Literal["user", "model", "assistant"]
    parts: List[Part] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts)

class ChatRequest(BaseModel):
    history: List[ChatTurn] = Field(default_factory=list)
    prompt: Optional[str] = None        # optional new user message, appended to history
