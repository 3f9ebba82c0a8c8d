# wayfarer/executors/selenium_exec.py
"""
Provides a Selenium/Chrome implementation of the `PageDriver` interface.

One Chrome instance is shared by all page sessions; every session is a
browser window (tab) identified by its window handle. Selenium's API is
blocking, so each call is run in the default executor while a thread lock
keeps commands from interleaving between windows.
"""
import asyncio
import base64
import threading
from typing import Any, Callable, Dict, Optional

from selenium import webdriver
from selenium.common.exceptions import (
    JavascriptException,
    NoSuchElementException,
    NoSuchWindowException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys

from wayfarer.exceptions import DriverError
from wayfarer.executors.driver import DriverResult, PageDriver
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


def normalize_url(url: str) -> str:
    """Prefix bare hostnames (``example.com``) with ``https://``."""
    url = url.strip()
    if "://" in url or url.startswith(("about:", "data:", "file:", "chrome:")):
        return url
    return f"https://{url}"


class SeleniumDriver(PageDriver):
    """A Chrome-backed driver with one window per page session."""

    def __init__(
        self,
        headless: bool = True,
        driver_path: Optional[str] = None,
        page_load_timeout_s: int = 30,
    ):
        """
        :param headless: Run Chrome in headless mode.
        :type headless: bool
        :param driver_path: Optional path to a chromedriver binary.
        :type driver_path: Optional[str]
        :param page_load_timeout_s: Maximum time a navigation may take.
        :type page_load_timeout_s: int
        """
        self.headless = headless
        self.driver_path = driver_path
        self.page_load_timeout_s = page_load_timeout_s
        self._driver: Optional[webdriver.Chrome] = None
        self._handles: Dict[str, str] = {}
        self._lock = threading.Lock()

    # ----- lifecycle -----

    def _start(self) -> webdriver.Chrome:
        options = ChromeOptions()
        if self.headless:
            options.add_argument("--headless=new")
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-gpu")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--window-size=1366,768")
        try:
            if self.driver_path:
                from selenium.webdriver.chrome.service import Service

                driver = webdriver.Chrome(
                    service=Service(self.driver_path), options=options
                )
            else:
                driver = webdriver.Chrome(options=options)
            driver.set_page_load_timeout(self.page_load_timeout_s)
            return driver
        except WebDriverException as e:
            raise DriverError(f"Failed to start Chrome driver: {e}") from e

    async def _call(self, fn: Callable[[], Any]) -> Any:
        def _locked():
            with self._lock:
                return fn()

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _locked)

    async def is_ready(self) -> bool:
        return self._driver is not None

    async def initialize(self) -> bool:
        if self._driver is not None:
            return True
        try:
            self._driver = await self._call(self._start)
        except DriverError as e:
            logger.error(f"Browser initialization failed: {e}")
            return False
        logger.info("Chrome driver started", extra={"headless": self.headless})
        return True

    async def shutdown(self) -> None:
        driver = self._driver
        self._driver = None
        self._handles.clear()
        if driver is None:
            return
        try:
            await self._call(driver.quit)
        except WebDriverException as e:
            logger.warning(f"Error while quitting Chrome driver: {e}")

    # ----- sessions -----

    async def open_session(self, session_id: str, url: Optional[str] = None) -> DriverResult:
        """Create (or reuse) the window backing `session_id`."""
        if not await self.initialize():
            return DriverResult.fail("Failed to initialize browser automation")

        def _open():
            driver = self._driver
            if session_id not in self._handles:
                if not self._handles and len(driver.window_handles) == 1:
                    # Reuse the window Chrome starts with for the first session.
                    self._handles[session_id] = driver.current_window_handle
                else:
                    driver.switch_to.new_window("tab")
                    self._handles[session_id] = driver.current_window_handle
            driver.switch_to.window(self._handles[session_id])
            if url:
                driver.get(normalize_url(url))
            return {"session_id": session_id, "url": driver.current_url}

        try:
            return DriverResult.ok(await self._call(_open))
        except WebDriverException as e:
            return DriverResult.fail(f"Failed to open session: {e}")

    async def close_session(self, session_id: str) -> None:
        handle = self._handles.pop(session_id, None)
        if handle is None or self._driver is None:
            return

        def _close():
            try:
                self._driver.switch_to.window(handle)
                self._driver.close()
            except NoSuchWindowException:
                pass

        await self._call(_close)

    def _activate(self, session_id: str) -> webdriver.Chrome:
        if self._driver is None:
            raise DriverError("Browser is not initialized.")
        handle = self._handles.get(session_id)
        if handle is None:
            raise DriverError(f"Unknown page session '{session_id}'.")
        try:
            self._driver.switch_to.window(handle)
        except NoSuchWindowException as e:
            self._handles.pop(session_id, None)
            raise DriverError(f"Window for page session '{session_id}' was closed.") from e
        return self._driver

    # ----- PageDriver -----

    async def navigate(self, session_id: str, url: str) -> DriverResult:
        target = normalize_url(url)

        def _go():
            driver = self._activate(session_id)
            driver.get(target)
            return {"url": driver.current_url, "title": driver.title}

        try:
            return DriverResult.ok(await self._call(_go))
        except TimeoutException:
            return DriverResult.fail(f"Timed out loading {target}")
        except WebDriverException as e:
            return DriverResult.fail(f"Navigation failed: {e.msg or e}")

    async def run_script(self, session_id: str, source: str) -> DriverResult:
        def _run():
            driver = self._activate(session_id)
            return driver.execute_script("return eval(arguments[0]);", source)

        try:
            return DriverResult.ok(await self._call(_run))
        except JavascriptException as e:
            return DriverResult.fail(f"Script error: {e.msg or e}")
        except WebDriverException as e:
            return DriverResult.fail(f"Script execution failed: {e.msg or e}")

    async def click(self, session_id: str, selector: str) -> DriverResult:
        def _click():
            driver = self._activate(session_id)
            driver.find_element(By.CSS_SELECTOR, selector).click()
            return {"selector": selector}

        try:
            return DriverResult.ok(await self._call(_click))
        except NoSuchElementException:
            return DriverResult.fail(f"Element not found: {selector}")
        except WebDriverException as e:
            return DriverResult.fail(f"Click failed on {selector}: {e.msg or e}")

    async def type(
        self, session_id: str, selector: str, text: str, clear: bool = True
    ) -> DriverResult:
        def _type():
            driver = self._activate(session_id)
            el = driver.find_element(By.CSS_SELECTOR, selector)
            el.click()
            if clear:
                el.send_keys(Keys.CONTROL, "a")
                el.send_keys(Keys.DELETE)
            el.send_keys(text)
            return {"selector": selector, "length": len(text)}

        try:
            return DriverResult.ok(await self._call(_type))
        except NoSuchElementException:
            return DriverResult.fail(f"Element not found: {selector}")
        except WebDriverException as e:
            return DriverResult.fail(f"Typing into {selector} failed: {e.msg or e}")

    async def screenshot(self, session_id: str, full_page: bool = False) -> DriverResult:
        def _shot() -> bytes:
            driver = self._activate(session_id)
            if full_page:
                shot = driver.execute_cdp_cmd(
                    "Page.captureScreenshot",
                    {"format": "png", "captureBeyondViewport": True},
                )
                return base64.b64decode(shot["data"])
            return driver.get_screenshot_as_png()

        try:
            png = await self._call(_shot)
        except WebDriverException as e:
            return DriverResult.fail(f"Screenshot failed: {e.msg or e}")
        return DriverResult.ok({"full_page": full_page, "bytes": len(png)}, screenshot=png)
