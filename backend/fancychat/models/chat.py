from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal

class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str

class ChatRequest(BaseModel):
    message: List[Any]

class UpstreamRequest(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model: str
    messages: List[Any]
    max_tokens: int = Field(default=1000)
    temperature: float = Field(default=0.7)

    @classmethod
    def from_chat(cls, chat: ChatRequest, model: str, max_tokens: int = 1000, temperature: float = 0.7) -> "UpstreamRequest":
        return cls(model=model, messages=chat.message, max_tokens=max_tokens, temperature=temperature)

class ChatResult(BaseModel):
    success: bool = True
    response: str
    usage: Any = None

class ErrorResponse(BaseModel):
    error: str
