# wayfarer/providers/openai_provider.py
"""
A concrete implementation of the BackendProvider for OpenAI's API.
"""
import json
from typing import Any, Dict, List, Optional, Sequence

import openai

from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.providers.base import BackendProvider, kind_for_status
from wayfarer.schemas.backend import OpenAIBackendConfig
from wayfarer.schemas.messages import Message, ProviderResponse, TokenUsage, ToolCall
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


def to_openai_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    wire: List[Dict[str, Any]] = []
    for m in messages:
        if m.role == "tool":
            wire.append(
                {"role": "tool", "tool_call_id": m.tool_call_id, "content": m.content}
            )
        elif m.role == "assistant" and m.tool_calls:
            wire.append(
                {
                    "role": "assistant",
                    "content": m.content or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": json.dumps(call.arguments),
                            },
                        }
                        for call in m.tool_calls
                    ],
                }
            )
        else:
            wire.append({"role": m.role, "content": m.content})
    return wire


def parse_arguments(raw: Optional[str], tool_name: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(
            f"Tool call '{tool_name}' carried invalid JSON arguments; using {{}}",
            extra={"raw": raw[:200]},
        )
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAIProvider(BackendProvider):
    """
    Provider for interacting with the official OpenAI Chat Completions API.
    """

    kind = "openai"
    display_name = "OpenAI"

    def __init__(self, config: OpenAIBackendConfig, client: Optional[Any] = None):
        self.config = config
        if client is None and not (config.api_key or config.base_url):
            raise ProviderError(
                "OpenAI API key not configured.", ProviderErrorKind.AUTH, self.display_name
            )
        self.client = client or openai.AsyncOpenAI(
            # OpenAI-compatible servers behind base_url may not need a key
            api_key=self.config.api_key or "",
            base_url=self.config.base_url,
            timeout=self.config.timeout_s,
        )

    async def send(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        logger.info(f"Sending conversation to OpenAI backend (model: {self.config.model})")
        kwargs: Dict[str, Any] = {
            "model": self.config.model,
            "messages": to_openai_messages(messages),
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens_to_generate,
        }
        if tools_enabled:
            kwargs["tools"] = self.tools()
            kwargs["tool_choice"] = "auto"

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except Exception as e:
            error = self.classify_error(e)
            logger.error(f"OpenAI request failed: {error}", extra={"kind": error.kind.value})
            raise error from e

        choice = response.choices[0]
        tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=parse_arguments(tc.function.arguments, tc.function.name),
            )
            for tc in (choice.message.tool_calls or [])
        ]
        usage = None
        if getattr(response, "usage", None) is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )
        return ProviderResponse(
            text=choice.message.content or "",
            tool_calls=tool_calls or None,
            model=getattr(response, "model", None),
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    async def list_models(self) -> List[str]:
        try:
            page = await self.client.models.list()
        except Exception as e:
            raise self.classify_error(e) from e
        ids = sorted(m.id for m in page.data)
        if self.config.base_url is None:
            # the official endpoint also lists embedding, audio and image models
            ids = [i for i in ids if "gpt" in i]
        return ids

    async def _check_reachable(self) -> List[str]:
        return await self.list_models()

    def classify_error(self, exc: Exception) -> ProviderError:
        name = self.display_name
        # APITimeoutError subclasses APIConnectionError, so it is tested first.
        if isinstance(exc, openai.APITimeoutError):
            return ProviderError(str(exc), ProviderErrorKind.TIMEOUT, name)
        if isinstance(exc, openai.APIConnectionError):
            return ProviderError(str(exc), ProviderErrorKind.NETWORK, name)
        if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return ProviderError(str(exc), ProviderErrorKind.AUTH, name, exc.status_code)
        if isinstance(exc, openai.RateLimitError):
            return ProviderError(str(exc), ProviderErrorKind.RATE_LIMIT, name, exc.status_code)
        if isinstance(exc, openai.APIStatusError):
            return ProviderError(
                str(exc), kind_for_status(exc.status_code), name, exc.status_code
            )
        return super().classify_error(exc)
