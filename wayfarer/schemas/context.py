# wayfarer/schemas/context.py
"""
Pydantic schemas describing a point-in-time view of a browser page.

A `ContextSnapshot` is produced by the context extractor and is immutable
once built; trackers keep bounded histories of them per page session.
"""
import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Bounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0


class ElementInfo(BaseModel):
    """An interactive element (button, input, clickable) found on the page."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    selector: str
    text: str = ""
    type: Optional[str] = None
    id: Optional[str] = None
    class_name: Optional[str] = None
    placeholder: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    title: Optional[str] = None
    role: Optional[str] = None
    visible: bool = True
    bounds: Optional[Bounds] = None


class LinkInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    href: str = ""
    selector: str
    visible: bool = True


class FormFieldInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag_name: str
    type: str = "text"
    name: Optional[str] = None
    id: Optional[str] = None
    placeholder: Optional[str] = None
    label: Optional[str] = None
    value: Optional[str] = None
    class_name: Optional[str] = None
    title: Optional[str] = None
    required: bool = False
    selector: str


class ViewportSize(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = 0
    height: int = 0


class ScrollPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float = 0
    y: float = 0


class ContextSnapshot(BaseModel):
    """Everything the agent knows about a page at one moment."""

    model_config = ConfigDict(frozen=True)

    current_url: str = "unknown"
    page_title: str = "unknown"
    domain: str = "unknown"
    protocol: str = "unknown"

    page_content: str = ""
    content_summary: str = "No content available"

    clickable_elements: List[ElementInfo] = Field(default_factory=list)
    buttons: List[ElementInfo] = Field(default_factory=list)
    links: List[LinkInfo] = Field(default_factory=list)
    form_fields: List[FormFieldInfo] = Field(default_factory=list)
    inputs: List[ElementInfo] = Field(default_factory=list)

    viewport_size: ViewportSize = Field(default_factory=ViewportSize)
    scroll_position: ScrollPosition = Field(default_factory=ScrollPosition)

    can_go_back: bool = False
    # Forward navigation and history are not observable from the page; None
    # means "unavailable", never "no".
    can_go_forward: Optional[bool] = None
    navigation_history: Optional[List[str]] = None

    error: Optional[str] = None
    last_action_error: Optional[str] = None
    screenshot: Optional[bytes] = None

    timestamp: float = Field(default_factory=time.time)
    load_time_ms: int = 0


class ContextOptions(BaseModel):
    include_screenshot: bool = False
    max_content_length: int = Field(200, ge=0)
    max_elements_per_type: int = Field(20, ge=0)
    include_invisible_elements: bool = False
    include_full_content: bool = False
