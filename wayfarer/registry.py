# wayfarer/registry.py
"""
Central browser tool catalog for Wayfarer.

- Fixed catalog of page tools, each with a pydantic input model and a safety level.
- Clear, typed ToolEntry surface used by the executor, the agent & CLI.
- Pure reshaping of the catalog into each model backend's tool-declaration format.
"""
from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple, Type

from pydantic import BaseModel

from wayfarer.exceptions import ToolNotFoundError
from wayfarer.schemas.tool_inputs import (
    ClickInput,
    EvaluateScriptInput,
    ExtractLinksInput,
    ExtractTextInput,
    FillFormInput,
    GetPageInfoInput,
    NavigateInput,
    ScreenshotInput,
    ScrollInput,
    TypeInput,
    WaitForElementInput,
)
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


class SafetyLevel(str, Enum):
    """How much harm a tool can do to the page or the user's accounts."""

    SAFE = "safe"
    MODERATE = "moderate"
    DANGEROUS = "dangerous"

    @property
    def rank(self) -> int:
        return _SAFETY_RANK[self]

    def allows(self, required: "SafetyLevel") -> bool:
        """True if a grant of this level covers a tool that requires `required`."""
        return self.rank >= SafetyLevel(required).rank


_SAFETY_RANK = {
    SafetyLevel.SAFE: 0,
    SafetyLevel.MODERATE: 1,
    SafetyLevel.DANGEROUS: 2,
}


# Global registry, in catalog order
TOOL_REGISTRY: Dict[str, "ToolEntry"] = {}

_REG_LOCK = threading.RLock()


@dataclass(frozen=True)
class ToolEntry:
    """Shape consumed by the executor and the provider adapters.

    Required:
      - name: canonical tool name used in tool calls
      - input_model: Pydantic model for argument validation and JSON schema
      - safety: level a caller must grant (or auto-confirm) to run the tool

    Optional metadata (used by the CLI / docs):
      - description: short description shown to the model
      - category: grouping label (e.g., "navigation", "interaction")
      - tags: tuple of short tags
    """

    name: str
    input_model: Type[BaseModel]
    safety: SafetyLevel = SafetyLevel.SAFE
    description: str = ""
    category: str | None = None
    tags: Tuple[str, ...] = ()


def register_tool(entry: ToolEntry) -> None:
    """Register a ToolEntry.

    Idempotent: re-registering an identical entry is a no-op. A different
    entry claiming the same name replaces it with a warning.
    """
    with _REG_LOCK:
        existing = TOOL_REGISTRY.get(entry.name)
        if existing is not None:
            if existing == entry:
                return
            logger.warning(
                "Re-registering tool '%s' with a different definition.", entry.name
            )
        TOOL_REGISTRY[entry.name] = entry
        logger.debug("Registered tool: %s", entry.name)


def get_tool(name: str) -> ToolEntry:
    try:
        return TOOL_REGISTRY[name]
    except KeyError:
        raise ToolNotFoundError(f"Tool not found: {name}")


def list_tools() -> List[ToolEntry]:
    return list(TOOL_REGISTRY.values())


def safety_of(name: str) -> SafetyLevel:
    """Safety level of a tool; names outside the catalog count as moderate."""
    entry = TOOL_REGISTRY.get(name)
    if entry is None:
        return SafetyLevel.MODERATE
    return entry.safety


def _strip_schema(node: Any) -> Any:
    """Drop pydantic titles and collapse Optional[X] into X."""
    if isinstance(node, dict):
        node = {k: _strip_schema(v) for k, v in node.items() if k != "title"}
        any_of = node.get("anyOf")
        if isinstance(any_of, list):
            non_null = [s for s in any_of if s != {"type": "null"}]
            if len(non_null) == 1 and len(non_null) != len(any_of):
                node.pop("anyOf")
                merged = dict(non_null[0])
                merged.update(node)
                node = merged
        if node.get("default", 0) is None:
            node.pop("default")
        return node
    if isinstance(node, list):
        return [_strip_schema(v) for v in node]
    return node


def parameters_schema(entry: ToolEntry) -> Dict[str, Any]:
    """Declarative JSON schema of a tool's arguments."""
    raw = entry.input_model.model_json_schema()
    schema = _strip_schema(raw)
    return {
        "type": "object",
        "properties": schema.get("properties", {}),
        "required": list(schema.get("required", [])),
    }


def for_provider(kind: str) -> List[Dict[str, Any]]:
    """Render the catalog in the tool-declaration shape a backend expects.

    Unknown backend kinds get an empty list, i.e. no tools.
    """
    tools: List[Dict[str, Any]] = []
    for entry in list_tools():
        params = parameters_schema(entry)
        if kind in ("openai", "ollama"):
            tools.append(
                {
                    "type": "function",
                    "function": {
                        "name": entry.name,
                        "description": entry.description,
                        "parameters": params,
                    },
                }
            )
        elif kind == "anthropic":
            tools.append(
                {
                    "name": entry.name,
                    "description": entry.description,
                    "input_schema": params,
                }
            )
        elif kind == "gemini":
            tools.append(
                {
                    "name": entry.name,
                    "description": entry.description,
                    "parameters": copy.deepcopy(params),
                }
            )
        else:
            return []
    return tools


_BUILTIN_TOOLS = (
    ToolEntry(
        name="navigate",
        input_model=NavigateInput,
        safety=SafetyLevel.SAFE,
        description="Navigate to a specific URL",
        category="navigation",
        tags=("page",),
    ),
    ToolEntry(
        name="click",
        input_model=ClickInput,
        safety=SafetyLevel.MODERATE,
        description="Click on an element on the page",
        category="interaction",
        tags=("dom", "input"),
    ),
    ToolEntry(
        name="type",
        input_model=TypeInput,
        safety=SafetyLevel.MODERATE,
        description="Type text into an input field",
        category="interaction",
        tags=("dom", "input"),
    ),
    ToolEntry(
        name="scroll",
        input_model=ScrollInput,
        safety=SafetyLevel.MODERATE,
        description="Scroll the page in a specific direction",
        category="interaction",
        tags=("viewport",),
    ),
    ToolEntry(
        name="screenshot",
        input_model=ScreenshotInput,
        safety=SafetyLevel.SAFE,
        description="Take a screenshot of the current page",
        category="extraction",
        tags=("image",),
    ),
    ToolEntry(
        name="extract_text",
        input_model=ExtractTextInput,
        safety=SafetyLevel.SAFE,
        description="Extract text content from specific elements or the entire page",
        category="extraction",
        tags=("dom", "read"),
    ),
    ToolEntry(
        name="extract_links",
        input_model=ExtractLinksInput,
        safety=SafetyLevel.SAFE,
        description="Extract all links from the current page",
        category="extraction",
        tags=("dom", "read"),
    ),
    ToolEntry(
        name="wait_for_element",
        input_model=WaitForElementInput,
        safety=SafetyLevel.SAFE,
        description="Wait for an element to appear on the page",
        category="navigation",
        tags=("dom", "sync"),
    ),
    ToolEntry(
        name="get_page_info",
        input_model=GetPageInfoInput,
        safety=SafetyLevel.SAFE,
        description="Get basic information about the current page",
        category="extraction",
        tags=("page", "read"),
    ),
    ToolEntry(
        name="fill_form",
        input_model=FillFormInput,
        safety=SafetyLevel.DANGEROUS,
        description="Fill multiple form fields at once",
        category="interaction",
        tags=("dom", "input", "form"),
    ),
    ToolEntry(
        name="evaluate_script",
        input_model=EvaluateScriptInput,
        safety=SafetyLevel.DANGEROUS,
        description="Execute custom JavaScript code on the page",
        category="scripting",
        tags=("javascript",),
    ),
)

for _entry in _BUILTIN_TOOLS:
    register_tool(_entry)
