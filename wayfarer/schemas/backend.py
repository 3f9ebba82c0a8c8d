# wayfarer/schemas/backend.py
"""
Pydantic schemas for defining backend provider configurations.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class BaseBackendConfig(BaseModel):
    """Base model for all backend configurations."""

    profile_name: str = Field(..., description="Unique name for this backend profile.")
    type: str = Field(
        ..., description="The type of backend provider (e.g., 'openai', 'anthropic')."
    )
    timeout_s: float = Field(60.0, gt=0, description="Request timeout in seconds.")


class OpenAIBackendConfig(BaseBackendConfig):
    """Configuration specific to an OpenAI-compatible API backend."""

    type: Literal["openai"] = "openai"
    model: str = Field(
        default="gpt-4o-mini", description="The model name to use for completions."
    )
    api_key: Optional[str] = Field(None, description="The API key for the OpenAI service.")
    base_url: Optional[str] = Field(
        None, description="Override for OpenAI-compatible servers."
    )
    temperature: float = Field(0.7)
    max_tokens_to_generate: int = Field(4096)


class AnthropicBackendConfig(BaseBackendConfig):
    """Configuration specific to the Anthropic messages API."""

    type: Literal["anthropic"] = "anthropic"
    model: str = Field(default="claude-3-5-sonnet-latest")
    api_key: Optional[str] = Field(None, description="The Anthropic API key.")
    llm_url: str = Field(
        "https://api.anthropic.com/v1/messages",
        description="The full URL to the /v1/messages endpoint.",
    )
    api_version: str = Field("2023-06-01", description="anthropic-version header.")
    temperature: float = Field(0.7)
    max_tokens_to_generate: int = Field(4096)


class GeminiBackendConfig(BaseBackendConfig):
    """Configuration specific to the Google Gemini generateContent API."""

    type: Literal["gemini"] = "gemini"
    model: str = Field(default="gemini-1.5-pro")
    api_key: Optional[str] = Field(None, description="The Gemini API key.")
    llm_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta/models",
        description="Base URL; the model and ':generateContent' are appended.",
    )
    temperature: float = Field(0.7)
    max_tokens_to_generate: int = Field(4096)
    top_p: float = Field(0.8)
    top_k: int = Field(40)


class OllamaBackendConfig(BaseBackendConfig):
    """Configuration specific to an Ollama backend."""

    type: Literal["ollama"] = "ollama"
    llm_url: str = Field(
        "http://localhost:11434", description="Base URL of the Ollama server."
    )
    model: str = Field("llama3.1", description="A tool-capable Ollama model.")
    temperature: float = Field(0.5)
    max_tokens_to_generate: int = Field(2048)
    top_p: float = Field(0.9)
    top_k: int = Field(40)


class BackendManifest(BaseModel):
    """Represents the entire collection of backends defined in backends.yaml."""

    backends: list[dict]


class ConnectionCheck(BaseModel):
    """Outcome of probing a backend profile."""

    ok: bool
    provider: str
    detail: str = ""
    models: List[str] = Field(default_factory=list)
