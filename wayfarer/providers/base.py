# wayfarer/providers/base.py
"""
Defines the abstract base class for all backend providers.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx

from wayfarer import registry
from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.schemas.backend import ConnectionCheck
from wayfarer.schemas.messages import Message, ProviderResponse
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

CONNECTION_TEST_PROMPT = "Hello! This is a connection test. Please reply briefly."


def latest_system_text(messages: Sequence[Message]) -> str:
    """
    The newest non-empty system message. The agent appends a fresh page-context
    prompt whenever the page changes, so older ones describe stale pages.
    """
    for m in reversed(messages):
        if m.role == "system" and m.content:
            return m.content
    return ""


def kind_for_status(status_code: Optional[int]) -> ProviderErrorKind:
    if status_code in (401, 403):
        return ProviderErrorKind.AUTH
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMIT
    if status_code is not None and status_code >= 500:
        return ProviderErrorKind.SERVER
    return ProviderErrorKind.UNKNOWN


class BackendProvider(ABC):
    """
    An abstract base class that defines the standard interface for a model
    backend. Concrete adapters translate the canonical `Message` history into
    their wire format and the backend's reply back into a `ProviderResponse`;
    the agent loop never branches on which backend it is talking to.
    """

    #: Backend kind, as used by `registry.for_provider`.
    kind: str = "unknown"
    #: Human-readable name used in user-facing error messages.
    display_name: str = "AI service"

    def supports_tool_calling(self) -> bool:
        return True

    def tools(self) -> List[Dict[str, Any]]:
        """The tool catalog in this backend's declaration format."""
        return registry.for_provider(self.kind)

    @abstractmethod
    async def send(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        """
        Sends the conversation to the backend.

        :param messages: The full conversation history, oldest first.
        :param tools_enabled: Whether to declare the tool catalog.
        :return: The backend's text and/or tool calls.
        :raises ProviderError: On any backend failure, already classified.
        """

    async def send_follow_up(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        """Request the response that follows a batch of tool results."""
        return await self.send(messages, tools_enabled=tools_enabled)

    async def list_models(self) -> List[str]:
        """
        Model ids the backend offers. Adapters without a listing endpoint
        report the configured model.
        """
        model = getattr(getattr(self, "config", None), "model", None)
        return [model] if model else []

    async def _check_reachable(self) -> List[str]:
        """
        Makes one small authenticated request and returns the models seen.
        The default sends a short prompt; adapters with a cheaper endpoint
        override this.

        :raises ProviderError: When the backend is unusable.
        """
        response = await self.send(
            [Message.user(CONNECTION_TEST_PROMPT)], tools_enabled=False
        )
        if not response.text:
            raise ProviderError(
                "Empty reply to the connection test.",
                ProviderErrorKind.UNKNOWN,
                self.display_name,
            )
        return [response.model] if response.model else await self.list_models()

    async def test_connection(self) -> ConnectionCheck:
        """Checks that the backend is reachable and the credentials work."""
        try:
            models = await self._check_reachable()
        except ProviderError as e:
            logger.warning(
                f"Connection test failed for {self.display_name}: {e}",
                extra={"kind": e.kind.value, "status_code": e.status_code},
            )
            return ConnectionCheck(ok=False, provider=self.display_name, detail=e.user_message)
        logger.info(f"Connection test passed for {self.display_name}")
        return ConnectionCheck(ok=True, provider=self.display_name, models=models)

    async def _get_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_s) as client:
                response = await client.get(url, headers=headers, params=params)
                response.raise_for_status()
                return response.json()
        except Exception as e:
            raise self.classify_error(e) from e

    def classify_error(self, exc: Exception) -> ProviderError:
        """Fold any exception raised while talking to the backend into a `ProviderError`."""
        if isinstance(exc, ProviderError):
            return exc
        if isinstance(exc, httpx.TimeoutException):
            return ProviderError(
                f"Request timed out: {exc}", ProviderErrorKind.TIMEOUT, self.display_name
            )
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            return ProviderError(
                f"HTTP {status}: {exc.response.text[:500]}",
                kind_for_status(status),
                self.display_name,
                status_code=status,
            )
        if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
            return ProviderError(
                f"Network error: {exc}", ProviderErrorKind.NETWORK, self.display_name
            )
        return ProviderError(
            str(exc) or exc.__class__.__name__, ProviderErrorKind.UNKNOWN, self.display_name
        )
