# wayfarer/tests/executors/test_selenium_exec.py
"""
Tests for the Selenium driver parts that do not need a browser.
"""
import pytest

from wayfarer.exceptions import DriverError
from wayfarer.executors.selenium_exec import SeleniumDriver, normalize_url


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("example.com", "https://example.com"),
        ("  example.com/path  ", "https://example.com/path"),
        ("http://example.com", "http://example.com"),
        ("about:blank", "about:blank"),
        ("file:///tmp/page.html", "file:///tmp/page.html"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


@pytest.mark.asyncio
async def test_uninitialized_driver():
    driver = SeleniumDriver()
    assert await driver.is_ready() is False
    with pytest.raises(DriverError, match="not initialized"):
        await driver.run_script("s1", "1 + 1")
    await driver.shutdown()
