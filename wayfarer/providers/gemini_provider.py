# wayfarer/providers/gemini_provider.py
"""
A concrete implementation of the BackendProvider for Google's Gemini API.

This adapter is text-only: the catalog is never declared, so the agent
degrades to plain chat with page context. The newest system text is inlined
into the first user turn and tool results are replayed as user text.
"""
from typing import Any, Dict, List, Sequence

import httpx

from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.providers.base import BackendProvider, latest_system_text
from wayfarer.schemas.backend import GeminiBackendConfig
from wayfarer.schemas.messages import Message, ProviderResponse, TokenUsage
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


def to_gemini_contents(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    system_text = latest_system_text(messages)
    contents: List[Dict[str, Any]] = []

    for m in messages:
        if m.role == "system":
            continue
        if m.role == "assistant":
            role, text = "model", m.content
        elif m.role == "tool":
            role, text = "user", f"Tool result ({m.tool_call_id}): {m.content}"
        else:
            role, text = "user", m.content
        if not text:
            continue
        if contents and contents[-1]["role"] == role:
            contents[-1]["parts"].append({"text": text})
        else:
            contents.append({"role": role, "parts": [{"text": text}]})

    if system_text:
        prefix = f"SYSTEM CONTEXT: {system_text}"
        if contents and contents[0]["role"] == "user":
            contents[0]["parts"].insert(0, {"text": prefix})
        else:
            contents.insert(0, {"role": "user", "parts": [{"text": prefix}]})
    return contents


class GeminiProvider(BackendProvider):
    """
    Provider for the Gemini generateContent endpoint.
    """

    kind = "gemini"
    display_name = "Gemini"

    def __init__(self, config: GeminiBackendConfig):
        self.config = config

    def supports_tool_calling(self) -> bool:
        return False

    def _api_key(self) -> str:
        if not self.config.api_key:
            raise ProviderError(
                "Gemini API key not configured.", ProviderErrorKind.AUTH, self.display_name
            )
        return self.config.api_key

    async def list_models(self) -> List[str]:
        data = await self._get_json(
            self.config.llm_url.rstrip("/"), params={"key": self._api_key()}
        )
        names = (m.get("name", "") for m in data.get("models") or [])
        return sorted(n.split("/")[-1] for n in names if "gemini" in n)

    async def _check_reachable(self) -> List[str]:
        return await self.list_models()

    async def send(
        self, messages: Sequence[Message], tools_enabled: bool = True
    ) -> ProviderResponse:
        api_key = self._api_key()
        url = f"{self.config.llm_url.rstrip('/')}/{self.config.model}:generateContent"
        payload = {
            "contents": to_gemini_contents(messages),
            "generationConfig": {
                "temperature": self.config.temperature,
                "topK": self.config.top_k,
                "topP": self.config.top_p,
                "maxOutputTokens": self.config.max_tokens_to_generate,
            },
        }

        logger.info(f"Sending conversation to Gemini backend (model: {self.config.model})")
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_s) as client:
                response = await client.post(
                    url, params={"key": api_key}, json=payload
                )
                if not response.is_success:
                    logger.error(
                        f"Error from Gemini ({response.status_code}): {response.text[:500]}"
                    )
                    response.raise_for_status()
                data = response.json()
        except Exception as e:
            raise self.classify_error(e) from e

        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderError(
                f"No candidates in response: {str(data)[:300]}",
                ProviderErrorKind.UNKNOWN,
                self.display_name,
            )
        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts)

        meta = data.get("usageMetadata") or {}
        return ProviderResponse(
            text=text,
            model=self.config.model,
            finish_reason=candidate.get("finishReason"),
            usage=TokenUsage(
                prompt_tokens=int(meta.get("promptTokenCount", 0)),
                completion_tokens=int(meta.get("candidatesTokenCount", 0)),
                total_tokens=int(meta.get("totalTokenCount", 0)),
            ),
        )
