# wayfarer/providers/anthropic_provider.py
"""
A concrete implementation of the BackendProvider for Anthropic's Messages API.

The Messages API is not OpenAI-compatible: system text travels in a separate
`system` field, turns must alternate user/assistant, tool calls are
`tool_use` content blocks and their results are `tool_result` blocks inside
a user turn.
"""
import json
from typing import Any, Dict, List, Sequence, Tuple

import httpx

from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.providers.base import BackendProvider, latest_system_text
from wayfarer.schemas.backend import AnthropicBackendConfig
from wayfarer.schemas.messages import Message, ProviderResponse, TokenUsage, ToolCall
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_SYSTEM = "You are a helpful AI assistant."


def to_anthropic_messages(
    messages: Sequence[Message],
) -> Tuple[str, List[Dict[str, Any]]]:
    """Split out the current system text and build alternating content-block turns."""
    turns: List[Dict[str, Any]] = []

    def _push(role: str, blocks: List[Dict[str, Any]]) -> None:
        if not blocks:
            return
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"].extend(blocks)
        else:
            turns.append({"role": role, "content": list(blocks)})

    for m in messages:
        if m.role == "system":
            continue
        if m.role == "tool":
            block: Dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": m.tool_call_id,
                "content": m.content,
            }
            if m.is_error:
                block["is_error"] = True
            _push("user", [block])
        elif m.role == "assistant":
            blocks: List[Dict[str, Any]] = []
            if m.content:
                blocks.append({"type": "text", "text": m.content})
            for call in m.tool_calls or []:
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.arguments,
                    }
                )
            _push("assistant", blocks)
        else:
            _push("user", [{"type": "text", "text": m.content}])

    if not turns or turns[0]["role"] != "user":
        turns.insert(0, {"role": "user", "content": [{"type": "text", "text": "(conversation start)"}]})

    return latest_system_text(messages) or DEFAULT_SYSTEM, turns


def parse_anthropic_response(data: Dict[str, Any]) -> ProviderResponse:
    texts: List[str] = []
    calls: List[ToolCall] = []
    for block in data.get("content") or []:
        if block.get("type") == "text":
            texts.append(block.get("text", ""))
        elif block.get("type") == "tool_use":
            calls.append(
                ToolCall(
                    id=block["id"],
                    name=block["name"],
                    arguments=block.get("input") or {},
                )
            )
    usage = data.get("usage") or {}
    prompt_tokens = int(usage.get("input_tokens", 0))
    completion_tokens = int(usage.get("output_tokens", 0))
    return ProviderResponse(
        text="\n".join(texts),
        tool_calls=calls or None,
        model=data.get("model"),
        finish_reason=data.get("stop_reason"),
        usage=TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


class AnthropicProvider(BackendProvider):
    """
    Provider for the Anthropic /v1/messages endpoint.
    """

    kind = "anthropic"
    display_name = "Claude"

    def __init__(self, config: AnthropicBackendConfig):
        self.config = config

    def _headers(self) -> Dict[str, str]:
        if not self.config.api_key:
            raise ProviderError(
                "Anthropic API key not configured.",
                ProviderErrorKind.AUTH,
                self.display_name,
            )
        return {
            "Content-Type": "application/json",
            "x-api-key": self.config.api_key,
            "anthropic-version": self.config.api_version,
        }

    def _models_url(self) -> str:
        base = self.config.llm_url.rstrip("/")
        if base.endswith("/messages"):
            base = base[: -len("/messages")]
        return f"{base}/models"

    async def list_models(self) -> List[str]:
        data = await self._get_json(self._models_url(), headers=self._headers())
        return sorted(m["id"] for m in data.get("data") or [] if m.get("id"))

    async def _check_reachable(self) -> List[str]:
        return await self.list_models()

    async def send(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        system, turns = to_anthropic_messages(messages)
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens_to_generate,
            "temperature": self.config.temperature,
            "system": system,
            "messages": turns,
        }
        if tools_enabled:
            payload["tools"] = self.tools()

        logger.info(f"Sending conversation to Anthropic backend (model: {self.config.model})")
        logger.debug(f"Anthropic payload: {json.dumps(payload)[:2000]}")

        try:
            headers = self._headers()
            async with httpx.AsyncClient(timeout=self.config.timeout_s) as client:
                response = await client.post(self.config.llm_url, headers=headers, json=payload)
                if not response.is_success:
                    logger.error(
                        f"Error from Anthropic ({response.status_code}): {response.text[:500]}"
                    )
                    response.raise_for_status()
                data = response.json()
        except Exception as e:
            raise self.classify_error(e) from e

        if "error" in data:
            err = data["error"] or {}
            raise ProviderError(
                f"{err.get('type', 'unknown')}: {err.get('message', 'Unknown error')}",
                ProviderErrorKind.UNKNOWN,
                self.display_name,
            )
        return parse_anthropic_response(data)
