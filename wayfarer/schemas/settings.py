# wayfarer/schemas/settings.py
"""
Centralized settings management using pydantic-settings.

This module defines a Settings model that automatically loads configuration
values from environment variables or a .env file. This is the single source
of truth for API keys and endpoint locations.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Loads backend secrets into a structured Pydantic model.

    The variable names defined here are sought in the environment or in a
    `.env` file at the project root. `backend_loader` resolves `${NAME}`
    placeholders in backends.yaml against these attributes.

    :ivar OPENAI_API_KEY: API key for the OpenAI chat completions API.
    :vartype OPENAI_API_KEY: Optional[str]
    :ivar ANTHROPIC_API_KEY: API key for the Anthropic messages API.
    :vartype ANTHROPIC_API_KEY: Optional[str]
    :ivar GEMINI_API_KEY: API key for the Google Gemini API.
    :vartype GEMINI_API_KEY: Optional[str]
    :ivar OLLAMA_URL: Base URL of a local Ollama server.
    :vartype OLLAMA_URL: str
    """

    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None
    OLLAMA_URL: str = "http://localhost:11434"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


# Create a single, cached instance of the settings to be used by the app.
settings = Settings()
