# wayfarer/providers/replay_provider.py
"""
A BackendProvider that serves pre-recorded responses instead of calling a model.
"""
from typing import Any, Dict, List, Sequence, Union

from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.providers.base import BackendProvider
from wayfarer.schemas.messages import Message, ProviderResponse


class ReplayProvider(BackendProvider):
    """
    Serves `ProviderResponse`s in order, one per request, and records every
    request it saw. Used for offline runs and tests.
    """

    display_name = "Replay"

    def __init__(
        self,
        responses: List[Union[ProviderResponse, Dict[str, Any], Exception]],
        kind: str = "openai",
        tool_calling: bool = True,
    ):
        self.responses = responses
        self.kind = kind
        self.tool_calling = tool_calling
        self.call_count = 0
        self.requests: List[Dict[str, Any]] = []

    def supports_tool_calling(self) -> bool:
        return self.tool_calling

    async def send(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        self.requests.append(
            {"messages": [m.model_copy() for m in messages], "tools_enabled": tools_enabled}
        )
        if self.call_count >= len(self.responses):
            raise ProviderError(
                "ReplayProvider ran out of responses to serve.",
                ProviderErrorKind.UNKNOWN,
                self.display_name,
            )
        item = self.responses[self.call_count]
        self.call_count += 1

        if isinstance(item, Exception):
            raise self.classify_error(item)
        if isinstance(item, ProviderResponse):
            return item
        return ProviderResponse.model_validate(item)
