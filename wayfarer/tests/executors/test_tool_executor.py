# wayfarer/tests/executors/test_tool_executor.py
"""
Tests for the safety-gated tool executor.
"""
import pytest

from wayfarer.agents.tool_executor import (
    ToolExecutionOptions,
    ToolExecutor,
    validate_arguments,
)
from wayfarer.exceptions import ToolValidationError
from wayfarer.registry import SafetyLevel, get_tool
from wayfarer.schemas.messages import ToolCall


def _call(name, **arguments):
    return ToolCall(id=f"call_{name}", name=name, arguments=arguments)


def _options(**kwargs):
    kwargs.setdefault("page_session_id", "s1")
    return ToolExecutionOptions(**kwargs)


@pytest.fixture
def executor(fake_driver):
    return ToolExecutor(fake_driver, poll_interval_ms=10)


def test_validate_arguments_names_missing_fields():
    with pytest.raises(ToolValidationError) as exc_info:
        validate_arguments(get_tool("type"), {})
    assert str(exc_info.value) == "Missing required argument(s) for type: selector, text"
    assert exc_info.value.missing == ["selector", "text"]


def test_validate_arguments_reports_invalid_values():
    with pytest.raises(ToolValidationError, match="Invalid arguments for scroll"):
        validate_arguments(get_tool("scroll"), {"direction": "sideways"})


@pytest.mark.asyncio
async def test_safe_tool_runs_without_grant(executor, fake_driver):
    result = await executor.execute(_call("navigate", url="https://example.org"), _options())

    assert result.success
    assert result.tool_name == "navigate"
    assert result.message == "Navigated to https://example.org"
    assert fake_driver.ops("navigate") == [("navigate", "s1", "https://example.org")]
    assert result.latency_ms >= 0


@pytest.mark.asyncio
async def test_dangerous_tool_requires_confirmation(executor, fake_driver):
    result = await executor.execute(
        _call("evaluate_script", script="document.title"), _options()
    )

    assert not result.success
    assert result.error == "Tool evaluate_script requires dangerous permission level"
    assert result.message == "Please confirm execution of evaluate_script"
    assert result.error_type == "ConfirmationRequired"
    assert fake_driver.calls == []


@pytest.mark.asyncio
async def test_moderate_grant_does_not_cover_dangerous(executor, fake_driver):
    result = await executor.execute(
        _call("fill_form", fields={"#a": "1"}),
        _options(safety_level=SafetyLevel.MODERATE),
    )
    assert result.error_type == "ConfirmationRequired"
    assert fake_driver.calls == []


@pytest.mark.asyncio
async def test_granted_level_allows_tool(executor, fake_driver):
    result = await executor.execute(
        _call("click", selector="#go"), _options(safety_level=SafetyLevel.MODERATE)
    )
    assert result.success
    assert result.message == "Clicked #go"


@pytest.mark.asyncio
async def test_auto_confirm_bypasses_gate(executor, fake_driver):
    fake_driver.script_results["document.title"] = "Example Domain"
    result = await executor.execute(
        _call("evaluate_script", script="document.title"), _options(auto_confirm=True)
    )
    assert result.success
    assert result.data == "Example Domain"
    assert result.message == "Script executed successfully"


@pytest.mark.asyncio
async def test_unknown_tool(executor, fake_driver):
    result = await executor.execute(_call("teleport"), _options(auto_confirm=True))
    assert not result.success
    assert result.error == "Unknown tool: teleport"
    assert result.error_type == "NotFound"
    assert fake_driver.calls == []


@pytest.mark.asyncio
async def test_missing_arguments_never_reach_driver(executor, fake_driver):
    fake_driver.ready = False
    result = await executor.execute(_call("navigate"), _options())

    assert not result.success
    assert result.error_type == "Validation"
    assert "url" in result.error
    assert fake_driver.calls == []
    assert fake_driver.init_calls == 0


@pytest.mark.asyncio
async def test_driver_is_initialized_lazily_once(executor, fake_driver):
    fake_driver.ready = False
    await executor.execute(_call("navigate", url="https://a.example"), _options())
    await executor.execute(_call("navigate", url="https://b.example"), _options())
    assert fake_driver.init_calls == 1


@pytest.mark.asyncio
async def test_driver_initialization_failure(executor, fake_driver):
    fake_driver.ready = False
    fake_driver.init_ok = False
    result = await executor.execute(_call("navigate", url="https://a.example"), _options())
    assert not result.success
    assert result.error == "Failed to initialize browser automation"
    assert fake_driver.ops("navigate") == []


@pytest.mark.asyncio
async def test_driver_failure_is_reported_and_recorded(executor, fake_driver):
    fake_driver.failing_selectors.add("#missing")
    result = await executor.execute(
        _call("click", selector="#missing"), _options(auto_confirm=True)
    )

    assert not result.success
    assert result.error == "Element not found: #missing"
    assert result.error_type == "Driver"

    snapshot = await executor.update_context("s1")
    assert snapshot.last_action_error == "Element not found: #missing"


@pytest.mark.asyncio
async def test_handler_exception_becomes_failed_result(executor, fake_driver):
    fake_driver.raise_on_scripts = True
    result = await executor.execute(_call("scroll", direction="down"), _options(auto_confirm=True))
    assert not result.success
    assert result.error == "Tool execution failed: browser went away"


@pytest.mark.asyncio
async def test_success_refreshes_context(executor, fake_driver):
    await executor.execute(_call("navigate", url="https://example.org/"), _options())
    ctx = executor.current_context("s1")
    assert ctx is not None
    assert ctx.current_url == "https://example.org/"


@pytest.mark.asyncio
async def test_context_refresh_can_be_skipped(executor, fake_driver):
    await executor.execute(
        _call("navigate", url="https://example.org/"), _options(update_context=False)
    )
    assert executor.current_context("s1") is None


@pytest.mark.asyncio
async def test_type_message_does_not_echo_text(executor, fake_driver):
    result = await executor.execute(
        _call("type", selector="#password", text="hunter22"), _options(auto_confirm=True)
    )
    assert result.success
    assert result.message == "Typed 8 characters into #password"
    assert "hunter22" not in result.for_model()
    assert fake_driver.ops("type") == [("type", "s1", "#password", "hunter22", True)]


@pytest.mark.asyncio
async def test_wait_for_element_found(executor, fake_driver):
    fake_driver.page["present"].add("#results")
    result = await executor.execute(
        _call("wait_for_element", selector="#results", timeout=1000), _options()
    )
    assert result.success
    assert result.message == "Element #results found"


@pytest.mark.asyncio
async def test_wait_for_element_zero_timeout_checks_once(executor, fake_driver):
    result = await executor.execute(
        _call("wait_for_element", selector="#never", timeout=0), _options()
    )

    assert not result.success
    assert result.error_type == "Timeout"
    assert result.error == "Element #never not found within 0ms"
    checks = [c for c in fake_driver.ops("run_script") if "#never" in str(c[2])]
    assert len(checks) == 1


@pytest.mark.asyncio
async def test_wait_for_element_polls_until_timeout(executor, fake_driver):
    result = await executor.execute(
        _call("wait_for_element", selector="#never", timeout=50), _options()
    )
    assert not result.success
    checks = [c for c in fake_driver.ops("run_script") if "#never" in str(c[2])]
    assert len(checks) >= 2


@pytest.mark.asyncio
async def test_fill_form_reports_each_field(executor, fake_driver):
    fake_driver.failing_selectors.add("#email")
    result = await executor.execute(
        _call("fill_form", fields={"#name": "Ada", "#email": "ada@example.com", "#city": "London"}),
        _options(auto_confirm=True),
    )

    assert result.success
    assert result.data["fields"] == {"#name": True, "#email": False, "#city": True}
    assert result.data["filled"] == 2
    assert result.data["failed"] == 1
    assert result.data["errors"] == {"#email": "Element not found: #email"}
    assert result.message == "Filled 2 of 3 form fields"
    assert [c[2] for c in fake_driver.ops("type")] == ["#name", "#city"]


@pytest.mark.asyncio
async def test_extract_links_filters_and_drops_empty_text(executor):
    result = await executor.execute(_call("extract_links"), _options())
    assert result.success
    assert [l["text"] for l in result.data] == ["More information", "Docs"]

    filtered = await executor.execute(_call("extract_links", filter="DOCS"), _options())
    assert [l["href"] for l in filtered.data] == ["https://example.com/docs"]
    assert filtered.message == "Extracted 1 links"


@pytest.mark.asyncio
async def test_screenshot_carries_image(executor, fake_driver):
    result = await executor.execute(_call("screenshot", full_page=True), _options())
    assert result.success
    assert result.screenshot == b"\x89PNG fake"
    assert fake_driver.ops("screenshot")[0] == ("screenshot", "s1", True)


@pytest.mark.asyncio
async def test_get_page_info(executor):
    result = await executor.execute(_call("get_page_info"), _options())
    assert result.success
    assert result.data["url"] == "https://example.com/"
    assert result.data["title"] == "Example Domain"
    assert result.data["buttons"] == 1
    assert result.data["can_go_forward"] is None


@pytest.mark.asyncio
async def test_page_change_summary_after_navigation(executor):
    await executor.update_context("s1")
    await executor.execute(_call("navigate", url="https://example.org/"), _options())
    summary = executor.page_change_summary("s1")
    assert summary.startswith("Navigated from https://example.com/ to https://example.org/")
    assert executor.page_change_summary("other") is None
