# wayfarer/agents/browser_agent.py
"""
The conversation loop that lets a model drive a browser page.

One `send_message` call is one turn:

    Idle -> ContextRefresh -> PromptBuild -> ProviderCall
         -> Done                                   (no tool calls)
         -> SequentialExecution -> ResultAppend -> FollowUpCall -> Done

Tool calls run strictly in order; the assistant message that requested them
and one tool message per call are appended to the conversation together, so
history never holds an unanswered tool call.
"""
import asyncio
from enum import Enum
from typing import Callable, List, Optional

from wayfarer.agents import page_analysis
from wayfarer.agents.conversation_store import ConversationStore
from wayfarer.agents.prompt_builder import build_contextual_system_prompt
from wayfarer.agents.tool_executor import ToolExecutionOptions, ToolExecutor
from wayfarer.context.scripts import PAGE_TEXT_SCRIPT
from wayfarer.context.tracker import ContextStore
from wayfarer.exceptions import ProviderError
from wayfarer.executors.driver import PageDriver
from wayfarer.providers.base import BackendProvider
from wayfarer.schemas.context import ContextOptions, ContextSnapshot
from wayfarer.schemas.conversation import (
    AgentExecutionOptions,
    AgentResponse,
    Conversation,
)
from wayfarer.schemas.messages import Message
from wayfarer.schemas.runtime import AgentRuntimeConfig
from wayfarer.schemas.tool_result import ToolResult
from wayfarer.utils.llm_query import get_provider_for_profile
from wayfarer.utils.log_sinks import conversation_id_context
from wayfarer.utils.logger import setup_logger
from wayfarer.utils.session_locks import SessionLocks

logger = setup_logger(__name__)

DEFAULT_REPLY = "I understand. Let me help you with that."


class TurnPhase(str, Enum):
    IDLE = "idle"
    CONTEXT_REFRESH = "context_refresh"
    PROMPT_BUILD = "prompt_build"
    PROVIDER_CALL = "provider_call"
    SEQUENTIAL_EXECUTION = "sequential_execution"
    RESULT_APPEND = "result_append"
    FOLLOW_UP_CALL = "follow_up_call"
    DONE = "done"


class BrowserAgent:
    """Orchestrates conversations, page context, providers and tools."""

    def __init__(
        self,
        driver: PageDriver,
        provider_resolver: Optional[Callable[[str], BackendProvider]] = None,
        config: Optional[AgentRuntimeConfig] = None,
    ):
        self.config = config or AgentRuntimeConfig()
        self.driver = driver
        self.provider_resolver = provider_resolver or get_provider_for_profile
        self.context_store = ContextStore(history_size=self.config.context_history_size)
        self.tool_executor = ToolExecutor(
            driver,
            self.context_store,
            poll_interval_ms=self.config.wait_poll_interval_ms,
        )
        self.conversations = ConversationStore(
            max_age_hours=self.config.conversation_max_age_hours
        )
        self.session_locks = SessionLocks()

    # ----- public API -----

    async def send_message(
        self, conversation_id: str, user_text: str, options: AgentExecutionOptions
    ) -> AgentResponse:
        token = conversation_id_context.set(conversation_id)
        try:
            return await self._run_turn(conversation_id, user_text, options)
        except ProviderError as e:
            logger.error(
                f"Provider failure during turn: {e}",
                extra={"kind": e.kind.value, "status_code": e.status_code},
            )
            return AgentResponse(message=f"I encountered an error: {e.user_message}")
        except Exception as e:
            logger.exception("Agent message processing failed")
            return AgentResponse(
                message=f"I encountered an error: {e}. Please try again."
            )
        finally:
            self._phase(TurnPhase.IDLE)
            conversation_id_context.reset(token)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self.conversations.get(conversation_id)

    def clear_conversation(self, conversation_id: str) -> bool:
        return self.conversations.clear(conversation_id)

    def list_active_conversations(self) -> List[Conversation]:
        return self.conversations.list_active()

    def cleanup_old_conversations(self) -> int:
        return self.conversations.cleanup_old()

    def current_context(self, page_session_id: str) -> Optional[ContextSnapshot]:
        return self.tool_executor.current_context(page_session_id)

    async def update_context(
        self, page_session_id: str, options: Optional[ContextOptions] = None
    ) -> ContextSnapshot:
        async with self.session_locks.hold(page_session_id):
            return await self.tool_executor.update_context(page_session_id, options)

    async def close_page_session(self, page_session_id: str) -> int:
        """
        Closes a page session and forgets everything kept for it: the driver's
        window, the context history, the conversations bound to it and its lock.
        Waits for driver work already running on the session to finish first.

        :return: The number of conversations that were dropped.
        """
        async with self.session_locks.hold(page_session_id):
            await self.driver.close_session(page_session_id)
            self.context_store.drop(page_session_id)
            dropped = self.conversations.drop_for_session(page_session_id)
        self.session_locks.discard(page_session_id)
        logger.info(
            f"Closed page session '{page_session_id}'",
            extra={"conversations_dropped": dropped},
        )
        return dropped

    # ----- one-shot page helpers -----

    async def page_text(self, page_session_id: str) -> str:
        """The full visible text of the page, or the last summary when the script fails."""
        async with self.session_locks.hold(page_session_id):
            result = await self.driver.run_script(page_session_id, PAGE_TEXT_SCRIPT)
        if result.success and isinstance(result.data, str) and result.data.strip():
            return result.data
        logger.warning(
            f"Could not read page text: {result.error}",
            extra={"page_session_id": page_session_id},
        )
        context = self.current_context(page_session_id)
        return context.content_summary if context else ""

    async def analyze_page(self, page_session_id: str, provider_kind: str, query: str) -> str:
        text = await self.page_text(page_session_id)
        return await page_analysis.analyze_page(self.provider_resolver(provider_kind), text, query)

    async def summarize_page(self, page_session_id: str, provider_kind: str) -> str:
        text = await self.page_text(page_session_id)
        return await page_analysis.summarize_content(self.provider_resolver(provider_kind), text)

    async def suggest_automation(
        self, page_session_id: str, provider_kind: str, goal: str
    ) -> str:
        text = await self.page_text(page_session_id)
        return await page_analysis.suggest_automation(
            self.provider_resolver(provider_kind), text, goal
        )

    # ----- turn -----

    def _phase(self, phase: TurnPhase) -> None:
        logger.debug(f"Turn phase -> {phase.value}")

    async def _run_turn(
        self, conversation_id: str, user_text: str, options: AgentExecutionOptions
    ) -> AgentResponse:
        session = options.page_session_id
        conversation = self.conversations.get_or_create(conversation_id, session)

        self._phase(TurnPhase.CONTEXT_REFRESH)
        context = await self.update_context(
            session,
            ContextOptions(
                max_content_length=self.config.context_max_content_length,
                include_screenshot=options.include_screenshot,
            ),
        )

        self._phase(TurnPhase.PROMPT_BUILD)
        provider = self.provider_resolver(options.provider_kind)
        if not conversation.messages or context.current_url != conversation.current_url:
            conversation.append(Message.system(build_contextual_system_prompt(context)))
            conversation.current_url = context.current_url
        conversation.append(Message.user(user_text))

        self._phase(TurnPhase.PROVIDER_CALL)
        tools_enabled = provider.supports_tool_calling()
        response = await provider.send(conversation.messages, tools_enabled=tools_enabled)

        if not response.tool_calls:
            reply = response.text or DEFAULT_REPLY
            conversation.append(Message.assistant(reply))
            self._phase(TurnPhase.DONE)
            return AgentResponse(
                message=reply,
                screenshot=context.screenshot if options.include_screenshot else None,
            )

        self._phase(TurnPhase.SEQUENTIAL_EXECUTION)
        results = await self._execute_batch(response.tool_calls, options)

        self._phase(TurnPhase.RESULT_APPEND)
        assistant = Message.assistant(response.text, tool_calls=response.tool_calls)
        tool_messages = [
            Message.tool(result.for_model(), call.id, is_error=not result.success)
            for call, result in zip(response.tool_calls, results)
        ]
        conversation.append_tool_exchange(assistant, tool_messages)

        async with self.session_locks.hold(session):
            after = await self.tool_executor.update_context(
                session,
                ContextOptions(
                    max_content_length=self.config.context_max_content_length,
                    include_screenshot=options.include_screenshot,
                ),
            )
        context_update = self.tool_executor.page_change_summary(session)

        reply = response.text or DEFAULT_REPLY
        if any(r.success for r in results):
            self._phase(TurnPhase.FOLLOW_UP_CALL)
            follow_up = await provider.send_follow_up(
                conversation.messages, tools_enabled=tools_enabled
            )
            if follow_up.tool_calls:
                logger.info(
                    f"Ignoring {len(follow_up.tool_calls)} tool call(s) requested in the follow-up"
                )
            reply = follow_up.text or DEFAULT_REPLY
            conversation.append(Message.assistant(reply))

        self._phase(TurnPhase.DONE)
        return AgentResponse(
            message=reply,
            tool_results=results,
            context_update=context_update,
            screenshot=after.screenshot if options.include_screenshot else None,
        )

    async def _execute_batch(self, tool_calls, options: AgentExecutionOptions) -> List[ToolResult]:
        exec_options = ToolExecutionOptions(
            page_session_id=options.page_session_id,
            auto_confirm=options.auto_confirm,
            safety_level=options.safety_level,
            update_context=False,
        )
        results: List[ToolResult] = []
        async with self.session_locks.hold(options.page_session_id):
            for index, call in enumerate(tool_calls):
                if index > 0 and self.config.inter_tool_delay_s > 0:
                    await asyncio.sleep(self.config.inter_tool_delay_s)
                results.append(await self.tool_executor.execute(call, exec_options))
        logger.info(
            f"Executed {len(results)} tool call(s)",
            extra={
                "tools": [c.name for c in tool_calls],
                "succeeded": sum(1 for r in results if r.success),
            },
        )
        return results
