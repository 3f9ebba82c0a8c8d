# wayfarer/schemas/messages.py
"""
Canonical message model shared by the conversation loop and every provider
adapter.

Adapters translate these records into their backend's wire format and
translate the backend's replies back into `ProviderResponse`. Nothing
outside `wayfarer.providers` sees a backend-specific shape.
"""
import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """A single tool invocation requested by the model."""

    id: str = Field(..., description="Correlation id, echoed by the tool message.")
    name: str = Field(..., description="Catalog tool name.")
    arguments: Dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """One entry of a conversation."""

    role: Role
    content: str = ""
    timestamp: float = Field(default_factory=time.time)
    tool_calls: Optional[List[ToolCall]] = Field(
        None, description="Only on assistant messages."
    )
    tool_call_id: Optional[str] = Field(
        None, description="Only on tool messages; matches a ToolCall.id."
    )
    is_error: bool = Field(
        False, description="Only on tool messages; the tool call failed."
    )

    @model_validator(mode="after")
    def _check_role_fields(self) -> "Message":
        if self.tool_calls and self.role != "assistant":
            raise ValueError("Only assistant messages may carry tool_calls.")
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("Tool messages require a tool_call_id.")
        if self.tool_call_id and self.role != "tool":
            raise ValueError("Only tool messages may carry a tool_call_id.")
        if self.is_error and self.role != "tool":
            raise ValueError("Only tool messages may be flagged as errors.")
        return self

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str, tool_calls: Optional[List[ToolCall]] = None
    ) -> "Message":
        return cls(role="assistant", content=content, tool_calls=tool_calls or None)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, is_error: bool = False) -> "Message":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, is_error=is_error)


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ProviderResponse(BaseModel):
    """What a provider adapter returns for one request."""

    text: str = ""
    tool_calls: Optional[List[ToolCall]] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Optional[TokenUsage] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
