# wayfarer/tests/providers/test_http_providers.py
"""
Tests for the Anthropic, Gemini and Ollama adapters against a mocked
HTTP transport.
"""
import json

import httpx
import pytest

from wayfarer.exceptions import ProviderError, ProviderErrorKind
from wayfarer.providers.anthropic_provider import AnthropicProvider, to_anthropic_messages
from wayfarer.providers.gemini_provider import GeminiProvider, to_gemini_contents
from wayfarer.providers.ollama_provider import OllamaProvider
from wayfarer.schemas.backend import (
    AnthropicBackendConfig,
    GeminiBackendConfig,
    OllamaBackendConfig,
)
from wayfarer.schemas.messages import Message, ToolCall


@pytest.fixture
def mock_http(monkeypatch):
    """Route every httpx.AsyncClient through a handler; returns the list of seen requests."""
    real_client = httpx.AsyncClient
    state = {"handler": None, "requests": []}

    def transport_handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(transport_handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", factory)
    return state


def _history():
    return [
        Message.system("You drive a browser."),
        Message.user("open example"),
        Message.assistant(
            "On it.",
            tool_calls=[ToolCall(id="t1", name="navigate", arguments={"url": "https://example.com"})],
        ),
        Message.tool("Navigated to https://example.com", "t1"),
    ]


# ----- Anthropic -----


def test_anthropic_message_translation():
    system, turns = to_anthropic_messages(_history())
    assert system == "You drive a browser."
    assert "is_error" not in turns[2]["content"][0]
    assert [t["role"] for t in turns] == ["user", "assistant", "user"]
    assert turns[1]["content"][1] == {
        "type": "tool_use",
        "id": "t1",
        "name": "navigate",
        "input": {"url": "https://example.com"},
    }
    assert turns[2]["content"][0]["type"] == "tool_result"
    assert turns[2]["content"][0]["tool_use_id"] == "t1"


def test_anthropic_sends_only_the_latest_system_text():
    history = _history() + [
        Message.system("CURRENT PAGE CONTEXT: URL: https://example.org/"),
        Message.user("and now?"),
    ]
    system, turns = to_anthropic_messages(history)
    assert system == "CURRENT PAGE CONTEXT: URL: https://example.org/"
    assert all(
        "You drive a browser." not in block.get("text", "")
        for turn in turns
        for block in turn["content"]
    )


def test_anthropic_flags_failed_tool_results():
    history = _history()[:3] + [Message.tool("Error: Element not found: #go", "t1", is_error=True)]
    _system, turns = to_anthropic_messages(history)
    assert turns[2]["content"][0] == {
        "type": "tool_result",
        "tool_use_id": "t1",
        "content": "Error: Element not found: #go",
        "is_error": True,
    }


def test_anthropic_merges_turns_and_starts_with_user():
    _system, turns = to_anthropic_messages(
        [Message.assistant("hello"), Message.user("a"), Message.user("b")]
    )
    assert turns[0] == {"role": "user", "content": [{"type": "text", "text": "(conversation start)"}]}
    assert [t["role"] for t in turns] == ["user", "assistant", "user"]
    assert len(turns[2]["content"]) == 2


@pytest.mark.asyncio
async def test_anthropic_send(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200,
        json={
            "model": "claude-3-5-sonnet-latest",
            "stop_reason": "tool_use",
            "content": [
                {"type": "text", "text": "Clicking."},
                {"type": "tool_use", "id": "tu_1", "name": "click", "input": {"selector": "#go"}},
            ],
            "usage": {"input_tokens": 100, "output_tokens": 20},
        },
    )
    provider = AnthropicProvider(AnthropicBackendConfig(profile_name="claude", api_key="secret"))

    response = await provider.send(_history())

    assert response.text == "Clicking."
    assert response.tool_calls[0].id == "tu_1"
    assert response.tool_calls[0].arguments == {"selector": "#go"}
    assert response.usage.total_tokens == 120

    request = mock_http["requests"][0]
    assert request.url == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "secret"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["system"] == "You drive a browser."
    assert body["tools"][0]["input_schema"]["required"] == ["url"]


@pytest.mark.asyncio
async def test_anthropic_missing_key_is_auth_error(mock_http):
    provider = AnthropicProvider(AnthropicBackendConfig(profile_name="claude"))
    with pytest.raises(ProviderError) as exc_info:
        await provider.send(_history())
    assert exc_info.value.kind == ProviderErrorKind.AUTH
    assert mock_http["requests"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, kind",
    [(401, ProviderErrorKind.AUTH), (429, ProviderErrorKind.RATE_LIMIT), (503, ProviderErrorKind.SERVER)],
)
async def test_anthropic_status_errors(mock_http, status, kind):
    mock_http["handler"] = lambda request: httpx.Response(status, json={"error": {"type": "x"}})
    provider = AnthropicProvider(AnthropicBackendConfig(profile_name="claude", api_key="secret"))
    with pytest.raises(ProviderError) as exc_info:
        await provider.send(_history())
    assert exc_info.value.kind == kind
    assert exc_info.value.status_code == status
    assert exc_info.value.provider == "Claude"


# ----- Gemini -----


def test_gemini_contents_inline_system_text():
    contents = to_gemini_contents(_history())
    assert contents[0]["role"] == "user"
    assert contents[0]["parts"][0] == {"text": "SYSTEM CONTEXT: You drive a browser."}
    assert contents[0]["parts"][1] == {"text": "open example"}
    assert contents[1] == {"role": "model", "parts": [{"text": "On it."}]}
    assert contents[2]["parts"][0]["text"] == "Tool result (t1): Navigated to https://example.com"


def test_gemini_inlines_only_the_latest_system_text():
    history = _history() + [
        Message.system("CURRENT PAGE CONTEXT: URL: https://example.org/"),
        Message.user("and now?"),
    ]
    contents = to_gemini_contents(history)
    prefixes = [
        part["text"]
        for content in contents
        for part in content["parts"]
        if part["text"].startswith("SYSTEM CONTEXT:")
    ]
    assert prefixes == ["SYSTEM CONTEXT: CURRENT PAGE CONTEXT: URL: https://example.org/"]


@pytest.mark.asyncio
async def test_gemini_send(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200,
        json={
            "candidates": [
                {"content": {"parts": [{"text": "Hello "}, {"text": "there"}]}, "finishReason": "STOP"}
            ],
            "usageMetadata": {"promptTokenCount": 8, "candidatesTokenCount": 2, "totalTokenCount": 10},
        },
    )
    provider = GeminiProvider(GeminiBackendConfig(profile_name="gemini", api_key="g-key"))

    response = await provider.send(_history(), tools_enabled=False)

    assert provider.supports_tool_calling() is False
    assert response.text == "Hello there"
    assert response.tool_calls is None
    assert response.usage.total_tokens == 10
    request = mock_http["requests"][0]
    assert request.url.path == "/v1beta/models/gemini-1.5-pro:generateContent"
    assert request.url.params["key"] == "g-key"


@pytest.mark.asyncio
async def test_gemini_without_candidates(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(200, json={"candidates": []})
    provider = GeminiProvider(GeminiBackendConfig(profile_name="gemini", api_key="g-key"))
    with pytest.raises(ProviderError, match="No candidates"):
        await provider.send(_history())


# ----- Ollama -----


@pytest.mark.asyncio
async def test_ollama_send_with_tool_calls(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200,
        json={
            "model": "llama3.1",
            "message": {
                "role": "assistant",
                "content": "",
                "tool_calls": [
                    {"function": {"name": "navigate", "arguments": {"url": "https://example.org"}}},
                    {"function": {"name": "click", "arguments": '{"selector": "#a"}'}},
                ],
            },
            "done_reason": "stop",
            "prompt_eval_count": 30,
            "eval_count": 4,
        },
    )
    provider = OllamaProvider(OllamaBackendConfig(profile_name="local"))

    response = await provider.send(_history())

    assert [c.name for c in response.tool_calls] == ["navigate", "click"]
    assert response.tool_calls[1].arguments == {"selector": "#a"}
    assert all(c.id.startswith("call_") for c in response.tool_calls)
    assert response.tool_calls[0].id != response.tool_calls[1].id
    assert response.usage.total_tokens == 34

    request = mock_http["requests"][0]
    assert str(request.url) == "http://localhost:11434/api/chat"
    body = json.loads(request.content)
    assert body["stream"] is False
    assert body["tools"][0]["type"] == "function"


@pytest.mark.asyncio
async def test_ollama_network_error(mock_http):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    mock_http["handler"] = refuse
    provider = OllamaProvider(OllamaBackendConfig(profile_name="local"))
    with pytest.raises(ProviderError) as exc_info:
        await provider.send(_history())
    assert exc_info.value.kind == ProviderErrorKind.NETWORK
    assert "Network error connecting to Ollama" in exc_info.value.user_message


@pytest.mark.asyncio
async def test_ollama_timeout(mock_http):
    def slow(request):
        raise httpx.ReadTimeout("too slow", request=request)

    mock_http["handler"] = slow
    provider = OllamaProvider(OllamaBackendConfig(profile_name="local"))
    with pytest.raises(ProviderError) as exc_info:
        await provider.send(_history())
    assert exc_info.value.kind == ProviderErrorKind.TIMEOUT


# ----- connection checks -----


@pytest.mark.asyncio
async def test_anthropic_lists_models(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200, json={"data": [{"id": "claude-3-5-sonnet-20241022"}, {"id": "claude-3-haiku-20240307"}]}
    )
    provider = AnthropicProvider(AnthropicBackendConfig(profile_name="claude", api_key="secret"))

    check = await provider.test_connection()

    assert check.ok is True
    assert check.models == ["claude-3-5-sonnet-20241022", "claude-3-haiku-20240307"]
    request = mock_http["requests"][0]
    assert request.method == "GET"
    assert str(request.url) == "https://api.anthropic.com/v1/models"
    assert request.headers["x-api-key"] == "secret"


@pytest.mark.asyncio
async def test_anthropic_connection_without_key(mock_http):
    provider = AnthropicProvider(AnthropicBackendConfig(profile_name="claude"))
    check = await provider.test_connection()
    assert check.ok is False
    assert check.detail == "Claude authentication failed. Please check your API key."
    assert mock_http["requests"] == []


@pytest.mark.asyncio
async def test_gemini_connection_filters_models(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200,
        json={
            "models": [
                {"name": "models/gemini-1.5-pro"},
                {"name": "models/text-embedding-004"},
                {"name": "models/gemini-1.5-flash"},
            ]
        },
    )
    provider = GeminiProvider(GeminiBackendConfig(profile_name="gemini", api_key="g-key"))

    check = await provider.test_connection()

    assert check.ok is True
    assert check.models == ["gemini-1.5-flash", "gemini-1.5-pro"]
    request = mock_http["requests"][0]
    assert request.url.path == "/v1beta/models"
    assert request.url.params["key"] == "g-key"


@pytest.mark.asyncio
async def test_gemini_connection_rejected_key(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}})
    provider = GeminiProvider(GeminiBackendConfig(profile_name="gemini", api_key="bad"))
    check = await provider.test_connection()
    assert check.ok is False
    assert check.detail == "Gemini authentication failed. Please check your API key."


@pytest.mark.asyncio
async def test_ollama_connection_requires_pulled_model(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200, json={"models": [{"name": "mistral:latest"}]}
    )
    provider = OllamaProvider(OllamaBackendConfig(profile_name="local"))

    check = await provider.test_connection()

    assert check.ok is False
    assert "Model 'llama3.1' is not pulled" in check.detail
    assert str(mock_http["requests"][0].url) == "http://localhost:11434/api/tags"


@pytest.mark.asyncio
async def test_ollama_connection_accepts_latest_tag(mock_http):
    mock_http["handler"] = lambda request: httpx.Response(
        200, json={"models": [{"name": "llama3.1:latest"}, {"name": "mistral:latest"}]}
    )
    provider = OllamaProvider(OllamaBackendConfig(profile_name="local"))
    check = await provider.test_connection()
    assert check.ok is True
    assert check.provider == "Ollama"
