# wayfarer/schemas/conversation.py
"""
Conversation state and the request/response records of one agent turn.
"""
import time
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from wayfarer.registry import SafetyLevel
from wayfarer.schemas.messages import Message
from wayfarer.schemas.tool_result import ToolResult


class Conversation(BaseModel):
    """An ordered, append-only message history bound to one page session.

    History is only ever extended through `append` and
    `append_tool_exchange`, so an assistant message that requested tools is
    always followed by exactly one tool message per call.
    """

    id: str
    page_session_id: str
    messages: List[Message] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)
    last_activity: float = Field(default_factory=time.time)
    current_url: Optional[str] = Field(
        None, description="Last page URL the model was told about."
    )

    def touch(self) -> None:
        self.last_activity = time.time()

    def append(self, message: Message) -> None:
        if message.role == "tool":
            raise ValueError(
                "Tool messages must be appended with append_tool_exchange()."
            )
        if message.role == "assistant" and message.tool_calls:
            raise ValueError(
                "Assistant messages with tool calls must be appended with append_tool_exchange()."
            )
        self.messages.append(message)
        self.touch()

    def append_tool_exchange(
        self, assistant: Message, tool_messages: Sequence[Message]
    ) -> None:
        """Append an assistant tool-call message and its results as one unit."""
        if assistant.role != "assistant" or not assistant.tool_calls:
            raise ValueError("Expected an assistant message carrying tool calls.")
        call_ids = [call.id for call in assistant.tool_calls]
        result_ids = [m.tool_call_id for m in tool_messages]
        if any(m.role != "tool" for m in tool_messages) or call_ids != result_ids:
            raise ValueError(
                f"Tool results {result_ids} do not match tool calls {call_ids}."
            )
        self.messages.append(assistant)
        self.messages.extend(tool_messages)
        self.touch()

    def pending_tool_call_ids(self) -> List[str]:
        answered = {m.tool_call_id for m in self.messages if m.role == "tool"}
        pending: List[str] = []
        for message in self.messages:
            for call in message.tool_calls or []:
                if call.id not in answered:
                    pending.append(call.id)
        return pending


class AgentExecutionOptions(BaseModel):
    """Caller-supplied options for one `BrowserAgent.send_message` turn."""

    provider_kind: str = Field(
        ..., description="Backend profile name from backends.yaml."
    )
    page_session_id: str
    auto_confirm: bool = False
    safety_level: SafetyLevel = SafetyLevel.SAFE
    include_screenshot: bool = False


class AgentResponse(BaseModel):
    message: str
    tool_results: List[ToolResult] = Field(default_factory=list)
    context_update: Optional[str] = None
    screenshot: Optional[bytes] = None
