# wayfarer/providers/ollama_provider.py
"""
A concrete implementation of the BackendProvider for an Ollama backend.
"""
import json
import uuid
from typing import Any, Dict, List, Sequence

import httpx

from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.providers.base import BackendProvider
from wayfarer.schemas.backend import OllamaBackendConfig
from wayfarer.schemas.messages import Message, ProviderResponse, TokenUsage, ToolCall
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


def to_ollama_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    wire: List[Dict[str, Any]] = []
    for m in messages:
        entry: Dict[str, Any] = {"role": m.role, "content": m.content}
        if m.role == "assistant" and m.tool_calls:
            entry["tool_calls"] = [
                {"function": {"name": call.name, "arguments": call.arguments}}
                for call in m.tool_calls
            ]
        wire.append(entry)
    return wire


class OllamaProvider(BackendProvider):
    """
    Provider for interacting with an Ollama /api/chat endpoint.
    """

    kind = "ollama"
    display_name = "Ollama"

    def __init__(self, config: OllamaBackendConfig):
        self.config = config
        logger.debug(
            f"OllamaProvider initialized with config: {config.model_dump_json()}"
        )

    async def list_models(self) -> List[str]:
        data = await self._get_json(f"{self.config.llm_url.rstrip('/')}/api/tags")
        return sorted(m["name"] for m in data.get("models") or [] if m.get("name"))

    async def _check_reachable(self) -> List[str]:
        models = await self.list_models()
        wanted = self.config.model
        if wanted not in models and f"{wanted}:latest" not in models:
            raise ProviderError(
                f"Model '{wanted}' is not pulled on this server.",
                ProviderErrorKind.UNKNOWN,
                self.display_name,
            )
        return models

    async def send(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        url = f"{self.config.llm_url.rstrip('/')}/api/chat"
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": to_ollama_messages(messages),
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
                "num_predict": self.config.max_tokens_to_generate,
                "top_p": self.config.top_p,
                "top_k": self.config.top_k,
            },
        }
        if tools_enabled:
            payload["tools"] = self.tools()

        logger.info("Sending conversation to Ollama backend.")
        logger.debug(f"Ollama final URL: {url}")

        try:
            async with httpx.AsyncClient() as client:
                timeout = httpx.Timeout(self.config.timeout_s)
                response = await client.post(url, json=payload, timeout=timeout)
                if not response.is_success:
                    logger.error(
                        f"Error from Ollama ({response.status_code}) at URL '{url}': {response.text}"
                    )
                    response.raise_for_status()
                result = response.json()
        except Exception as e:
            raise self.classify_error(e) from e

        if "message" not in result:
            raise ProviderError(
                "Invalid response format from Ollama: 'message' key missing.",
                ProviderErrorKind.UNKNOWN,
                self.display_name,
            )
        message = result["message"]

        calls: List[ToolCall] = []
        for raw in message.get("tool_calls") or []:
            fn = raw.get("function") or {}
            args = fn.get("arguments") or {}
            if isinstance(args, str):
                try:
                    args = json.loads(args)
                except json.JSONDecodeError:
                    logger.warning(f"Discarding invalid arguments for tool '{fn.get('name')}'")
                    args = {}
            calls.append(
                ToolCall(
                    id=raw.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                    name=fn.get("name", ""),
                    arguments=args if isinstance(args, dict) else {},
                )
            )

        prompt_tokens = int(result.get("prompt_eval_count", 0))
        completion_tokens = int(result.get("eval_count", 0))
        return ProviderResponse(
            text=message.get("content") or "",
            tool_calls=calls or None,
            model=result.get("model"),
            finish_reason=result.get("done_reason"),
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )
