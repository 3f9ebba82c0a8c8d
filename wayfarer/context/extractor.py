# wayfarer/context/extractor.py
"""
Builds `ContextSnapshot`s of a page through the automation driver.

Extraction runs five independent steps (identity, text, element inventory,
navigation state, geometry). Each step degrades to a safe default when its
script fails, so a partially broken page still yields a usable snapshot.
`extract()` itself never raises.
"""
import re
import time
from typing import Any, Dict, List, Optional

from wayfarer.context import scripts
from wayfarer.context.selectors import generate_selector
from wayfarer.executors.driver import PageDriver
from wayfarer.schemas.context import (
    Bounds,
    ContextOptions,
    ContextSnapshot,
    ElementInfo,
    FormFieldInfo,
    LinkInfo,
    ScrollPosition,
    ViewportSize,
)
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

NO_CONTENT = "No content available"

_WHITESPACE = re.compile(r"\s+")


def create_content_summary(content: Optional[str], max_length: int = 200) -> str:
    """Collapse whitespace and cut `content` to about `max_length` characters.

    A cut that lands inside a word backs up to the previous space when that
    space lies in the last fifth of the budget; the result then ends in
    ``...``.
    """
    if not content:
        return NO_CONTENT
    cleaned = _WHITESPACE.sub(" ", content).strip()
    if not cleaned:
        return NO_CONTENT
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]
    last_space = truncated.rfind(" ")
    if last_space >= max_length * 0.8:
        return truncated[:last_space] + "..."
    return truncated + "..."


def _str(raw: Dict[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _element(raw: Dict[str, Any]) -> ElementInfo:
    tag = str(raw.get("tag") or raw.get("tag_name") or "*").lower()
    bounds = raw.get("bounds")
    return ElementInfo(
        tag_name=tag,
        selector=raw.get("selector")
        or generate_selector(tag, raw.get("id"), raw.get("className")),
        text=str(raw.get("text") or ""),
        type=_str(raw, "type"),
        id=_str(raw, "id"),
        class_name=_str(raw, "className"),
        placeholder=_str(raw, "placeholder"),
        name=_str(raw, "name"),
        value=_str(raw, "value"),
        title=_str(raw, "title") or _str(raw, "ariaLabel"),
        role=_str(raw, "role"),
        visible=bool(raw.get("isVisible", True)),
        bounds=Bounds(**bounds) if isinstance(bounds, dict) else None,
    )


def _link(raw: Dict[str, Any]) -> LinkInfo:
    return LinkInfo(
        text=str(raw.get("text") or ""),
        href=str(raw.get("href") or ""),
        selector=raw.get("selector") or "a",
        visible=bool(raw.get("isVisible", True)),
    )


def _form_field(raw: Dict[str, Any]) -> FormFieldInfo:
    tag = str(raw.get("tag") or "input").lower()
    return FormFieldInfo(
        tag_name=tag,
        type=str(raw.get("type") or tag),
        name=_str(raw, "name"),
        id=_str(raw, "id"),
        placeholder=_str(raw, "placeholder"),
        label=_str(raw, "label"),
        value=_str(raw, "value"),
        class_name=_str(raw, "className"),
        title=_str(raw, "title"),
        required=bool(raw.get("required", False)),
        selector=raw.get("selector") or generate_selector(tag, raw.get("id"), None),
    )


class ContextExtractor:
    """Produces snapshots of one page session at a time."""

    def __init__(self, driver: PageDriver):
        self.driver = driver

    async def _script(self, session_id: str, source: str, step: str) -> Optional[Any]:
        try:
            result = await self.driver.run_script(session_id, source)
        except Exception as e:
            logger.warning(f"Context step '{step}' raised: {e}")
            return None
        if not result.success:
            logger.debug(f"Context step '{step}' failed: {result.error}")
            return None
        return result.data

    async def _identity(self, session_id: str) -> Dict[str, str]:
        data = await self._script(session_id, scripts.PAGE_IDENTITY_SCRIPT, "identity")
        if not isinstance(data, dict):
            return {"url": "unknown", "title": "unknown", "domain": "unknown", "protocol": "unknown"}
        return {
            "url": str(data.get("url") or "unknown"),
            "title": str(data.get("title") or ""),
            "domain": str(data.get("domain") or "unknown"),
            "protocol": str(data.get("protocol") or "unknown"),
        }

    async def _text(self, session_id: str) -> str:
        data = await self._script(session_id, scripts.PAGE_TEXT_SCRIPT, "text")
        return data if isinstance(data, str) else ""

    async def _elements(self, session_id: str, options: ContextOptions) -> Dict[str, List[Any]]:
        empty: Dict[str, List[Any]] = {
            "buttons": [], "links": [], "inputs": [], "form_fields": [], "clickable": []
        }
        source = scripts.interactive_elements_script(
            options.max_elements_per_type, options.include_invisible_elements
        )
        data = await self._script(session_id, source, "elements")
        if not isinstance(data, dict):
            return empty

        cap = options.max_elements_per_type
        keep_all = options.include_invisible_elements
        try:
            buttons = [_element(r) for r in data.get("buttons") or []]
            inputs = [_element(r) for r in data.get("inputs") or []]
            clickable = [_element(r) for r in data.get("clickable") or []]
            links = [_link(r) for r in data.get("links") or []]
            fields = [_form_field(r) for r in data.get("formFields") or []]
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed element inventory: {e}")
            return empty

        if not keep_all:
            buttons = [b for b in buttons if b.visible]
            inputs = [i for i in inputs if i.visible]
            clickable = [c for c in clickable if c.visible]
            links = [link for link in links if link.visible]
            fields = [f for f in fields if f.type != "hidden"]
        clickable = [c for c in clickable if c.text]

        return {
            "buttons": buttons[:cap],
            "links": links[:cap],
            "inputs": inputs[:cap],
            "form_fields": fields[:cap],
            "clickable": clickable[: cap + 10],
        }

    async def _can_go_back(self, session_id: str) -> bool:
        data = await self._script(session_id, scripts.NAVIGATION_STATE_SCRIPT, "navigation")
        if isinstance(data, dict):
            return bool(data.get("canGoBack", False))
        return False

    async def _geometry(self, session_id: str):
        data = await self._script(session_id, scripts.VIEWPORT_SCRIPT, "viewport")
        try:
            viewport = ViewportSize(**data["viewport"])
            scroll = ScrollPosition(**data["scroll"])
        except (TypeError, KeyError, ValueError):
            return ViewportSize(width=1366, height=768), ScrollPosition(x=0, y=0)
        return viewport, scroll

    async def extract(
        self, session_id: str, options: Optional[ContextOptions] = None
    ) -> ContextSnapshot:
        options = options or ContextOptions()
        started = time.monotonic()
        try:
            identity = await self._identity(session_id)
            text = await self._text(session_id)
            elements = await self._elements(session_id, options)
            can_go_back = await self._can_go_back(session_id)
            viewport, scroll = await self._geometry(session_id)

            screenshot = None
            if options.include_screenshot:
                shot = await self.driver.screenshot(session_id, full_page=False)
                if shot.success:
                    screenshot = shot.screenshot

            snapshot = ContextSnapshot(
                current_url=identity["url"],
                page_title=identity["title"],
                domain=identity["domain"],
                protocol=identity["protocol"],
                page_content=text,
                content_summary=create_content_summary(text, options.max_content_length),
                clickable_elements=elements["clickable"],
                buttons=elements["buttons"],
                links=elements["links"],
                form_fields=elements["form_fields"],
                inputs=elements["inputs"],
                viewport_size=viewport,
                scroll_position=scroll,
                can_go_back=can_go_back,
                screenshot=screenshot,
                load_time_ms=int((time.monotonic() - started) * 1000),
            )
        except Exception as e:
            logger.exception(f"Context extraction failed for session '{session_id}'")
            return ContextSnapshot(
                current_url="unknown",
                page_title="Error",
                content_summary=NO_CONTENT,
                viewport_size=ViewportSize(width=0, height=0),
                error=str(e) or e.__class__.__name__,
            )

        logger.debug(
            "Context extracted",
            extra={
                "session_id": session_id,
                "url": snapshot.current_url,
                "buttons": len(snapshot.buttons),
                "links": len(snapshot.links),
                "form_fields": len(snapshot.form_fields),
                "load_time_ms": snapshot.load_time_ms,
            },
        )
        return snapshot
