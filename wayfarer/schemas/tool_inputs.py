# wayfarer/schemas/tool_inputs.py
"""
Pydantic input models for the browser tool catalog.

One model per tool. The JSON schemas sent to model backends are derived from
these models, and tool-call arguments are validated against them before
anything is dispatched to the automation driver.
"""

from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


# ---- Navigation ----


class NavigateInput(BaseModel):
    url: str = Field(
        ...,
        description="The URL to navigate to (must include protocol like https://)",
    )


class WaitForElementInput(BaseModel):
    selector: str = Field(..., description="CSS selector for the element to wait for")
    timeout: int = Field(
        5000,
        ge=0,
        description="Maximum time to wait in milliseconds (default: 5000)",
    )


class GetPageInfoInput(BaseModel):
    pass


# ---- Interaction ----


class ClickInput(BaseModel):
    selector: str = Field(
        ...,
        description=(
            'CSS selector for the element to click (e.g., "#button-id", '
            '".class-name", "button[type=submit]")'
        ),
    )
    description: Optional[str] = Field(
        None,
        description="Human-readable description of what element you're clicking",
    )


class TypeInput(BaseModel):
    selector: str = Field(..., description="CSS selector for the input field")
    text: str = Field(..., description="Text to type into the field")
    clear: bool = Field(
        True, description="Whether to clear the field before typing (default: true)"
    )


class ScrollInput(BaseModel):
    direction: Literal["up", "down", "left", "right"] = Field(
        ..., description="Direction to scroll"
    )
    amount: int = Field(
        500, ge=0, description="Amount to scroll in pixels (default: 500)"
    )


class FillFormInput(BaseModel):
    fields: Dict[str, str] = Field(
        ..., description="Object mapping CSS selectors to values to fill"
    )


# ---- Extraction ----


class ScreenshotInput(BaseModel):
    full_page: bool = Field(
        False,
        description="Whether to capture the full page or just the visible area (default: false)",
    )


class ExtractTextInput(BaseModel):
    selector: Optional[str] = Field(
        None,
        description="CSS selector for specific elements (optional - if not provided, extracts all text)",
    )


class ExtractLinksInput(BaseModel):
    filter: Optional[str] = Field(
        None,
        description="Optional filter to match link text or href (case-insensitive)",
    )


# ---- Scripting ----


class EvaluateScriptInput(BaseModel):
    script: str = Field(..., description="JavaScript code to execute")
