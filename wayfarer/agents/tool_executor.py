# wayfarer/agents/tool_executor.py
"""
Runs one model-requested tool call against the automation driver.

`ToolExecutor.execute` never raises: unknown tools, safety-gate refusals,
invalid arguments, driver failures and exceptions all come back as a failed
`ToolResult`, so the agent can always answer every tool call it recorded.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError

from wayfarer import registry
from wayfarer.context import scripts
from wayfarer.context.extractor import ContextExtractor
from wayfarer.context.tracker import ContextStore
from wayfarer.exceptions import ToolValidationError
from wayfarer.executors.driver import DriverResult, PageDriver
from wayfarer.registry import SafetyLevel
from wayfarer.schemas.context import ContextOptions, ContextSnapshot
from wayfarer.schemas.messages import ToolCall
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
from wayfarer.schemas.tool_result import ToolResult
from wayfarer.utils.logger import setup_logger
from wayfarer.utils.redact import redact_tool_args

logger = setup_logger(__name__)


class ToolExecutionOptions(BaseModel):
    page_session_id: str
    auto_confirm: bool = False
    safety_level: SafetyLevel = SafetyLevel.SAFE
    update_context: bool = True


def _now_ms() -> int:
    return int(time.time() * 1000)


def validate_arguments(entry: registry.ToolEntry, arguments: Dict[str, Any]) -> BaseModel:
    """Validate raw tool-call arguments against the tool's input model.

    :raises ToolValidationError: naming the missing or invalid arguments.
    """
    try:
        return entry.input_model.model_validate(arguments or {})
    except ValidationError as e:
        missing = [
            ".".join(str(p) for p in err["loc"])
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if missing:
            message = f"Missing required argument(s) for {entry.name}: {', '.join(missing)}"
        else:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            message = f"Invalid arguments for {entry.name}: {problems}"
        raise ToolValidationError(message, missing=missing) from e


def _from_driver(
    result: DriverResult, success_message: str, include_data: bool = True
) -> ToolResult:
    if not result.success:
        return ToolResult.err_result(
            error=result.error or "Unknown driver error", error_type="Driver"
        )
    return ToolResult.ok_result(
        data=result.data if include_data else None,
        message=success_message,
        screenshot=result.screenshot,
    )


class ToolExecutor:
    """Safety-gated dispatcher from tool calls to driver operations."""

    def __init__(
        self,
        driver: PageDriver,
        context_store: Optional[ContextStore] = None,
        poll_interval_ms: int = 100,
    ):
        self.driver = driver
        self.context_store = context_store or ContextStore()
        self.extractor = ContextExtractor(driver)
        self.poll_interval_ms = poll_interval_ms
        self._handlers: Dict[
            str, Callable[[str, Any], Awaitable[ToolResult]]
        ] = {
            "navigate": self._navigate,
            "click": self._click,
            "type": self._type,
            "scroll": self._scroll,
            "screenshot": self._screenshot,
            "extract_text": self._extract_text,
            "extract_links": self._extract_links,
            "wait_for_element": self._wait_for_element,
            "get_page_info": self._get_page_info,
            "fill_form": self._fill_form,
            "evaluate_script": self._evaluate_script,
        }

    # ----- entry point -----

    async def execute(
        self, tool_call: ToolCall, options: ToolExecutionOptions
    ) -> ToolResult:
        start = _now_ms()
        result = await self._execute(tool_call, options)
        result.tool_name = tool_call.name
        result.latency_ms = _now_ms() - start

        if not result.success:
            logger.warning(
                f"Tool '{tool_call.name}' failed: {result.error}",
                extra={"error_type": result.error_type, "latency_ms": result.latency_ms},
            )
            self.context_store.tracker(options.page_session_id).record_action_error(
                result.error or "Unknown error"
            )
        elif options.update_context:
            try:
                await self.update_context(
                    options.page_session_id, ContextOptions(max_content_length=1000)
                )
            except Exception as e:
                logger.warning(f"Failed to update context after action: {e}")
        return result

    async def _execute(
        self, tool_call: ToolCall, options: ToolExecutionOptions
    ) -> ToolResult:
        name = tool_call.name
        try:
            entry = registry.get_tool(name)
        except KeyError:
            return ToolResult.err_result(error=f"Unknown tool: {name}", error_type="NotFound")

        if not options.auto_confirm and not options.safety_level.allows(entry.safety):
            return ToolResult.err_result(
                error=f"Tool {name} requires {entry.safety.value} permission level",
                message=f"Please confirm execution of {name}",
                error_type="ConfirmationRequired",
            )

        try:
            args = validate_arguments(entry, tool_call.arguments)
        except ToolValidationError as e:
            return ToolResult.err_result(error=str(e), error_type="Validation")

        logger.info(
            f"Executing tool: {name}",
            extra={
                "session_id": options.page_session_id,
                "args": redact_tool_args(name, tool_call.arguments),
            },
        )

        try:
            if not await self.driver.is_ready():
                if not await self.driver.initialize():
                    return ToolResult.err_result(
                        error="Failed to initialize browser automation",
                        error_type="Driver",
                    )
            return await self._handlers[name](options.page_session_id, args)
        except Exception as e:
            logger.exception(f"Tool execution failed for {name}")
            return ToolResult.err_result(
                error=f"Tool execution failed: {e}", error_type="Runtime"
            )

    # ----- tool implementations -----

    async def _navigate(self, session: str, args: NavigateInput) -> ToolResult:
        result = await self.driver.navigate(session, args.url)
        return _from_driver(result, f"Navigated to {args.url}")

    async def _click(self, session: str, args: ClickInput) -> ToolResult:
        result = await self.driver.click(session, args.selector)
        return _from_driver(result, f"Clicked {args.description or args.selector}")

    async def _type(self, session: str, args: TypeInput) -> ToolResult:
        result = await self.driver.type(session, args.selector, args.text, clear=args.clear)
        return _from_driver(
            result, f"Typed {len(args.text)} characters into {args.selector}", include_data=False
        )

    async def _scroll(self, session: str, args: ScrollInput) -> ToolResult:
        result = await self.driver.run_script(
            session, scripts.scroll_script(args.direction, args.amount)
        )
        return _from_driver(result, f"Scrolled {args.direction} by {args.amount}px")

    async def _screenshot(self, session: str, args: ScreenshotInput) -> ToolResult:
        result = await self.driver.screenshot(session, full_page=args.full_page)
        return _from_driver(result, "Screenshot captured")

    async def _extract_text(self, session: str, args: ExtractTextInput) -> ToolResult:
        result = await self.driver.run_script(session, scripts.extract_text_script(args.selector))
        suffix = f" from {args.selector}" if args.selector else ""
        return _from_driver(result, f"Extracted text{suffix}")

    async def _extract_links(self, session: str, args: ExtractLinksInput) -> ToolResult:
        result = await self.driver.run_script(session, scripts.EXTRACT_LINKS_SCRIPT)
        if not result.success:
            return _from_driver(result, "")
        links = [l for l in (result.data or []) if isinstance(l, dict) and l.get("text")]
        if args.filter:
            needle = args.filter.lower()
            links = [
                l
                for l in links
                if needle in str(l.get("text", "")).lower()
                or needle in str(l.get("href", "")).lower()
            ]
        return ToolResult.ok_result(data=links, message=f"Extracted {len(links)} links")

    async def _wait_for_element(self, session: str, args: WaitForElementInput) -> ToolResult:
        source = scripts.element_exists_script(args.selector)
        deadline = time.monotonic() + args.timeout / 1000.0
        interval = self.poll_interval_ms / 1000.0
        last_error: Optional[str] = None
        while True:
            result = await self.driver.run_script(session, source)
            if result.success and result.data:
                return ToolResult.ok_result(
                    data={"selector": args.selector}, message=f"Element {args.selector} found"
                )
            if not result.success:
                last_error = result.error
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

        error = f"Element {args.selector} not found within {args.timeout}ms"
        if last_error:
            error += f" ({last_error})"
        return ToolResult.err_result(error=error, error_type="Timeout")

    async def _get_page_info(self, session: str, args: GetPageInfoInput) -> ToolResult:
        ctx = await self.extractor.extract(session, ContextOptions(max_content_length=500))
        if ctx.error:
            return ToolResult.err_result(
                error=f"Failed to get page info: {ctx.error}", error_type="Driver"
            )
        return ToolResult.ok_result(
            data={
                "url": ctx.current_url,
                "title": ctx.page_title,
                "domain": ctx.domain,
                "buttons": len(ctx.buttons),
                "links": len(ctx.links),
                "form_fields": len(ctx.form_fields),
                "can_go_back": ctx.can_go_back,
                "can_go_forward": ctx.can_go_forward,
            },
            message="Page information extracted",
        )

    async def _fill_form(self, session: str, args: FillFormInput) -> ToolResult:
        outcome: Dict[str, bool] = {}
        errors: Dict[str, str] = {}
        for selector, value in args.fields.items():
            try:
                clicked = await self.driver.click(session, selector)
                if not clicked.success:
                    raise RuntimeError(clicked.error or "click failed")
                typed = await self.driver.type(session, selector, value, clear=True)
                if not typed.success:
                    raise RuntimeError(typed.error or "type failed")
                outcome[selector] = True
            except Exception as e:
                logger.warning(f"Failed to fill field {selector}: {e}")
                outcome[selector] = False
                errors[selector] = str(e)

        filled = sum(1 for ok in outcome.values() if ok)
        data: Dict[str, Any] = {
            "fields": outcome,
            "filled": filled,
            "failed": len(outcome) - filled,
        }
        if errors:
            data["errors"] = errors
        return ToolResult.ok_result(
            data=data, message=f"Filled {filled} of {len(outcome)} form fields"
        )

    async def _evaluate_script(self, session: str, args: EvaluateScriptInput) -> ToolResult:
        result = await self.driver.run_script(session, args.script)
        return _from_driver(result, "Script executed successfully")

    # ----- context -----

    async def update_context(
        self, session_id: str, options: Optional[ContextOptions] = None
    ) -> ContextSnapshot:
        snapshot = await self.extractor.extract(session_id, options)
        return self.context_store.tracker(session_id).update(snapshot)

    def current_context(self, session_id: str) -> Optional[ContextSnapshot]:
        tracker = self.context_store.get(session_id)
        return tracker.current if tracker else None

    def context_summary(
        self, session_id: str, options: Optional[ContextOptions] = None
    ) -> str:
        return self.context_store.tracker(session_id).context_summary(options)

    def page_change_summary(self, session_id: str) -> Optional[str]:
        tracker = self.context_store.get(session_id)
        return tracker.page_change_summary() if tracker else None
