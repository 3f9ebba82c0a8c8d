# wayfarer/utils/llm_query.py
"""
Factory for model backend providers, keyed by backends.yaml profile name.
"""
from typing import Dict

from wayfarer.exceptions import ConfigurationError
from wayfarer.providers.anthropic_provider import AnthropicProvider
from wayfarer.providers.base import BackendProvider
from wayfarer.providers.gemini_provider import GeminiProvider
from wayfarer.providers.ollama_provider import OllamaProvider
from wayfarer.providers.openai_provider import OpenAIProvider
from wayfarer.utils.backend_loader import get_backend_config
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

_provider_cache: Dict[str, BackendProvider] = {}


def get_provider_for_profile(profile_name: str) -> BackendProvider:
    """
    Factory function to get the correct provider instance based on a profile name.

    Providers are cached per profile so HTTP clients are reused across turns.
    """
    cached = _provider_cache.get(profile_name)
    if cached is not None:
        return cached

    backend_config = get_backend_config(profile_name)

    if backend_config.type == "openai":
        provider: BackendProvider = OpenAIProvider(config=backend_config)
    elif backend_config.type == "anthropic":
        provider = AnthropicProvider(config=backend_config)
    elif backend_config.type == "gemini":
        provider = GeminiProvider(config=backend_config)
    elif backend_config.type == "ollama":
        provider = OllamaProvider(config=backend_config)
    else:
        raise ConfigurationError(
            f"Unsupported backend provider type: '{backend_config.type}'"
        )

    logger.info(f"Created {provider.__class__.__name__} for profile '{profile_name}'")
    _provider_cache[profile_name] = provider
    return provider


def clear_provider_cache() -> None:
    _provider_cache.clear()
