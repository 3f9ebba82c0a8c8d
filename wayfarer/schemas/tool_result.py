# wayfarer/schemas/tool_result.py
"""
Standard ToolResult returned by the tool executor.

Fields:
- success, data, error, message, screenshot: the outcome of one tool call
- tool_name, latency_ms, error_type: provenance for logs and the UI

Exactly one ToolResult is produced per tool call; `for_model()` renders the
text that is fed back to the model in the matching tool message.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, Field


class ToolResult(BaseModel):
    # Basic outcome
    success: bool = Field(..., description="True on success, False on error")
    data: Optional[Any] = Field(None, description="Structured tool output")
    error: Optional[str] = Field(None, description="Error text when success is False")
    message: Optional[str] = Field(
        None, description="Short human-readable summary of what happened"
    )
    screenshot: Optional[bytes] = Field(
        None, description="PNG bytes, for screenshot-producing tools"
    )

    # Provenance
    tool_name: Optional[str] = Field(None, description="Catalog tool name")
    error_type: Optional[str] = Field(
        None,
        description="Short error category (ConfirmationRequired|Validation|Driver|Timeout|NotFound|...)",
    )
    latency_ms: int = Field(0, description="Milliseconds spent in the tool")

    # ----- Builders -----

    @classmethod
    def ok_result(
        cls,
        *,
        data: Optional[Any] = None,
        message: Optional[str] = None,
        screenshot: Optional[bytes] = None,
        tool_name: Optional[str] = None,
        latency_ms: int = 0,
    ) -> "ToolResult":
        return cls(
            success=True,
            data=data,
            error=None,
            message=message,
            screenshot=screenshot,
            tool_name=tool_name,
            error_type=None,
            latency_ms=latency_ms,
        )

    @classmethod
    def err_result(
        cls,
        *,
        error: str,
        error_type: str = "Runtime",
        message: Optional[str] = None,
        data: Optional[Any] = None,
        tool_name: Optional[str] = None,
        latency_ms: int = 0,
    ) -> "ToolResult":
        return cls(
            success=False,
            data=data,
            error=error,
            message=message,
            screenshot=None,
            tool_name=tool_name,
            error_type=error_type,
            latency_ms=latency_ms,
        )

    # ----- Rendering -----

    def for_model(self) -> str:
        """Text content of the tool message sent back to the model."""
        if not self.success:
            return f"Error: {self.error or 'Unknown error'}"

        text = self.message or "Tool executed successfully"
        if self.data is not None:
            text += f"\nResult: {json.dumps(self.data, indent=2, default=str)}"
        return text
