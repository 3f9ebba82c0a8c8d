# wayfarer/executors/driver.py
"""
Defines the abstract automation driver the orchestrator acts through.

Every operation addresses a page session by id and reports its outcome as a
`DriverResult` instead of raising, so a failing click is data, not control
flow. Implementations may still raise `DriverError` when the browser itself
is gone; the tool executor turns that into a failed tool result as well.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel


class DriverResult(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    screenshot: Optional[bytes] = None

    @classmethod
    def ok(cls, data: Any = None, screenshot: Optional[bytes] = None) -> "DriverResult":
        return cls(success=True, data=data, screenshot=screenshot)

    @classmethod
    def fail(cls, error: str) -> "DriverResult":
        return cls(success=False, error=error)


class PageDriver(ABC):
    """
    Abstract browser automation driver. Concrete drivers (Selenium, a test
    fake) implement these coroutines; none of them is expected to be
    concurrency-safe for a single session, callers serialize per session.
    """

    @abstractmethod
    async def is_ready(self) -> bool:
        """Whether the driver can accept commands without `initialize()`."""

    @abstractmethod
    async def initialize(self) -> bool:
        """Start the underlying browser. Returns False on failure."""

    @abstractmethod
    async def navigate(self, session_id: str, url: str) -> DriverResult:
        pass

    @abstractmethod
    async def run_script(self, session_id: str, source: str) -> DriverResult:
        """
        Evaluates a JavaScript expression in the page.

        :param session_id: The page session to run in.
        :param source: A JavaScript expression; its value is returned as `data`.
        :return: The result, JSON-compatible values only.
        """

    @abstractmethod
    async def click(self, session_id: str, selector: str) -> DriverResult:
        pass

    @abstractmethod
    async def type(
        self, session_id: str, selector: str, text: str, clear: bool = True
    ) -> DriverResult:
        """Focus the element, optionally clear it, then type `text`."""

    @abstractmethod
    async def screenshot(self, session_id: str, full_page: bool = False) -> DriverResult:
        """Capture PNG bytes of the page into `DriverResult.screenshot`."""

    async def close_session(self, session_id: str) -> None:
        """Release whatever the driver holds for a page session. Unknown ids are ignored."""
        return None
