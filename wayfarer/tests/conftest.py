# wayfarer/tests/conftest.py
"""
Shared fixtures: an in-memory page driver that answers the context and tool
scripts from a dict describing the page.
"""
from typing import Any, Dict, List, Optional

import pytest

from wayfarer.context import scripts
from wayfarer.executors.driver import DriverResult, PageDriver


def default_page() -> Dict[str, Any]:
    return {
        "url": "https://example.com/",
        "title": "Example Domain",
        "domain": "example.com",
        "protocol": "https:",
        "text": "Example Domain. This domain is for use in illustrative examples.",
        "elements": {
            "buttons": [
                {"tag": "button", "id": "go", "text": "Go", "isVisible": True},
            ],
            "links": [
                {"selector": "a", "text": "More information", "href": "https://iana.org/", "isVisible": True},
            ],
            "inputs": [],
            "formFields": [],
            "clickable": [
                {"tag": "button", "id": "go", "text": "Go", "isVisible": True},
            ],
        },
        "links": [
            {"text": "More information", "href": "https://iana.org/", "title": ""},
            {"text": "Docs", "href": "https://example.com/docs", "title": ""},
            {"text": "", "href": "https://example.com/empty", "title": ""},
        ],
        "can_go_back": False,
        "present": set(),
    }


class FakeDriver(PageDriver):
    """
    Scriptable PageDriver.

    - `page` describes what the context scripts see.
    - `failing_selectors` make click/type fail for those selectors.
    - `failing_scripts` names context steps ("identity", "text", "elements",
      "navigation", "viewport") whose script fails.
    - `calls` records every operation in order.
    """

    def __init__(self, page: Optional[Dict[str, Any]] = None, ready: bool = True):
        self.page = page or default_page()
        self.ready = ready
        self.init_ok = True
        self.init_calls = 0
        self.failing_selectors: set = set()
        self.failing_scripts: set = set()
        self.raise_on_scripts = False
        self.script_results: Dict[str, Any] = {}
        self.calls: List[tuple] = []

    async def is_ready(self) -> bool:
        return self.ready

    async def initialize(self) -> bool:
        self.init_calls += 1
        self.ready = self.init_ok
        return self.init_ok

    async def navigate(self, session_id: str, url: str) -> DriverResult:
        self.calls.append(("navigate", session_id, url))
        self.page["url"] = url
        self.page["title"] = f"Page at {url}"
        self.page["can_go_back"] = True
        return DriverResult.ok({"url": url})

    def _step(self, source: str) -> Optional[str]:
        if source == scripts.PAGE_IDENTITY_SCRIPT:
            return "identity"
        if source == scripts.PAGE_TEXT_SCRIPT:
            return "text"
        if source == scripts.NAVIGATION_STATE_SCRIPT:
            return "navigation"
        if source == scripts.VIEWPORT_SCRIPT:
            return "viewport"
        if "const includeInvisible" in source:
            return "elements"
        return None

    async def run_script(self, session_id: str, source: str) -> DriverResult:
        step = self._step(source)
        self.calls.append(("run_script", session_id, step or source))
        if self.raise_on_scripts:
            raise RuntimeError("browser went away")
        if step in self.failing_scripts:
            return DriverResult.fail(f"{step} script failed")

        page = self.page
        if step == "identity":
            return DriverResult.ok(
                {
                    "url": page["url"],
                    "title": page["title"],
                    "domain": page["domain"],
                    "protocol": page["protocol"],
                }
            )
        if step == "text":
            return DriverResult.ok(page["text"])
        if step == "navigation":
            return DriverResult.ok({"canGoBack": page["can_go_back"]})
        if step == "viewport":
            return DriverResult.ok(
                {"viewport": {"width": 1280, "height": 720}, "scroll": {"x": 0, "y": 120}}
            )
        if step == "elements":
            return DriverResult.ok(page["elements"])
        if source == scripts.EXTRACT_LINKS_SCRIPT:
            return DriverResult.ok(page["links"])
        if "document.querySelector(" in source and source.endswith("!== null)"):
            return DriverResult.ok(any(f'"{sel}"' in source for sel in page["present"]))
        if "window.scrollBy" in source:
            return DriverResult.ok({"x": 0, "y": 500})
        if source in self.script_results:
            return DriverResult.ok(self.script_results[source])
        return DriverResult.ok(None)

    async def click(self, session_id: str, selector: str) -> DriverResult:
        self.calls.append(("click", session_id, selector))
        if selector in self.failing_selectors:
            return DriverResult.fail(f"Element not found: {selector}")
        return DriverResult.ok()

    async def type(
        self, session_id: str, selector: str, text: str, clear: bool = True
    ) -> DriverResult:
        self.calls.append(("type", session_id, selector, text, clear))
        if selector in self.failing_selectors:
            return DriverResult.fail(f"Element not found: {selector}")
        return DriverResult.ok()

    async def screenshot(self, session_id: str, full_page: bool = False) -> DriverResult:
        self.calls.append(("screenshot", session_id, full_page))
        return DriverResult.ok(screenshot=b"\x89PNG fake")

    def ops(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_driver():
    return FakeDriver()
