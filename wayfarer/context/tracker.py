# wayfarer/context/tracker.py
"""
Per page-session context history and the text summaries built from it.
"""
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from wayfarer.schemas.context import ContextOptions, ContextSnapshot
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

NO_CONTEXT = "No browser context available."

_DEFAULT_SUMMARY_ITEMS = 5


class ContextTracker:
    """Current snapshot plus a bounded history for one page session."""

    def __init__(self, history_size: int = 10):
        self.history_size = history_size
        self._current: Optional[ContextSnapshot] = None
        self._history: Deque[ContextSnapshot] = deque(maxlen=history_size)
        self._pending_error: Optional[str] = None

    @property
    def current(self) -> Optional[ContextSnapshot]:
        return self._current

    @property
    def history(self) -> List[ContextSnapshot]:
        return list(self._history)

    def record_action_error(self, message: str) -> None:
        """Remember a failed action; it is stamped into the next snapshot."""
        self._pending_error = message

    def update(self, snapshot: ContextSnapshot) -> ContextSnapshot:
        if self._pending_error is not None:
            snapshot = snapshot.model_copy(
                update={"last_action_error": self._pending_error}
            )
            self._pending_error = None
        if self._current is not None:
            self._history.append(self._current)
        self._current = snapshot
        return snapshot

    def clear(self) -> None:
        self._current = None
        self._history.clear()
        self._pending_error = None

    def page_change_summary(self) -> Optional[str]:
        """What changed between the previous snapshot and the current one."""
        if self._current is None or not self._history:
            return None
        current = self._current
        previous = self._history[-1]

        changes: List[str] = []
        if current.current_url != previous.current_url:
            changes.append(
                f"Navigated from {previous.current_url} to {current.current_url}"
            )
        if current.page_title != previous.page_title:
            changes.append(
                f'Page title changed from "{previous.page_title}" to "{current.page_title}"'
            )
        seen = {b.selector for b in previous.buttons}
        new_buttons = [b for b in current.buttons if b.selector not in seen]
        if new_buttons:
            changes.append(f"{len(new_buttons)} new buttons appeared")
        if current.last_action_error:
            changes.append(f"Error occurred: {current.last_action_error}")

        return "; ".join(changes) if changes else None

    def context_summary(self, options: Optional[ContextOptions] = None) -> str:
        """Compact plain-text description of the current page for the model."""
        ctx = self._current
        if ctx is None:
            return NO_CONTEXT

        limit = options.max_elements_per_type if options else _DEFAULT_SUMMARY_ITEMS
        parts = [
            f"Current Page: {ctx.page_title or 'Untitled'}",
            f"URL: {ctx.current_url}",
            f"Domain: {ctx.domain}",
        ]

        if ctx.can_go_back or ctx.can_go_forward:
            nav = []
            if ctx.can_go_back:
                nav.append("can go back")
            if ctx.can_go_forward:
                nav.append("can go forward")
            parts.append(f"Navigation: {', '.join(nav)}")

        if options is not None and options.include_full_content and ctx.page_content:
            content = ctx.page_content
            if len(content) > options.max_content_length:
                content = content[: options.max_content_length] + "..."
            parts.append(f"Content: {content}")
        elif ctx.content_summary:
            parts.append(f"Content: {ctx.content_summary}")

        if ctx.buttons:
            listed = ", ".join(f'"{b.text or b.selector}"' for b in ctx.buttons[:limit])
            more = "..." if len(ctx.buttons) > limit else ""
            parts.append(f"Buttons: {listed}{more}")

        if ctx.links:
            listed = ", ".join(f'"{l.text}" ({l.href})' for l in ctx.links[:limit])
            more = "..." if len(ctx.links) > limit else ""
            parts.append(f"Links: {listed}{more}")

        if ctx.form_fields:
            rendered = []
            for f in ctx.form_fields[:limit]:
                text = f.type
                if f.label:
                    text += f' "{f.label}"'
                if f.placeholder:
                    text += f" ({f.placeholder})"
                rendered.append(text)
            more = "..." if len(ctx.form_fields) > limit else ""
            parts.append(f"Form Fields: {', '.join(rendered)}{more}")

        if ctx.last_action_error:
            parts.append(f"Last Error: {ctx.last_action_error}")

        return "\n".join(parts)

    def tool_context(self) -> Optional[Dict[str, Any]]:
        """Structured view of the current page, keyed the way tools refer to it."""
        ctx = self._current
        if ctx is None:
            return None
        return {
            "page": {
                "url": ctx.current_url,
                "title": ctx.page_title,
                "domain": ctx.domain,
                "can_go_back": ctx.can_go_back,
                "can_go_forward": ctx.can_go_forward,
            },
            "elements": {
                "buttons": [
                    {"selector": b.selector, "text": b.text, "visible": b.visible}
                    for b in ctx.buttons
                ],
                "links": [{"text": l.text, "href": l.href} for l in ctx.links],
                "form_fields": [
                    {
                        "selector": f.selector,
                        "name": f.name,
                        "type": f.type,
                        "label": f.label,
                        "placeholder": f.placeholder,
                        "required": f.required,
                        "id": f.id,
                    }
                    for f in ctx.form_fields
                ],
            },
            "viewport": ctx.viewport_size.model_dump(),
            "scroll": ctx.scroll_position.model_dump(),
            "timestamp": ctx.timestamp,
        }


class ContextStore:
    """Maps page-session ids to their `ContextTracker`."""

    def __init__(self, history_size: int = 10):
        self.history_size = history_size
        self._trackers: Dict[str, ContextTracker] = {}

    def tracker(self, session_id: str) -> ContextTracker:
        tracker = self._trackers.get(session_id)
        if tracker is None:
            tracker = ContextTracker(self.history_size)
            self._trackers[session_id] = tracker
        return tracker

    def get(self, session_id: str) -> Optional[ContextTracker]:
        return self._trackers.get(session_id)

    def drop(self, session_id: str) -> None:
        self._trackers.pop(session_id, None)
        logger.debug(f"Dropped context history for page session '{session_id}'")

    def session_ids(self) -> List[str]:
        return list(self._trackers)
