# wayfarer/utils/backend_loader.py
"""
Utility for loading and resolving backend configurations from backends.yaml.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from wayfarer.exceptions import ConfigurationError
from wayfarer.schemas.backend import (
    AnthropicBackendConfig,
    BackendManifest,
    BaseBackendConfig,
    GeminiBackendConfig,
    OllamaBackendConfig,
    OpenAIBackendConfig,
)
from wayfarer.schemas.settings import settings
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)

BACKENDS_FILENAME = "backends.yaml"

_BACKEND_TYPES = {
    "openai": OpenAIBackendConfig,
    "anthropic": AnthropicBackendConfig,
    "gemini": GeminiBackendConfig,
    "ollama": OllamaBackendConfig,
}

_backend_manifest_cache = None


def _load_manifest_from_file() -> dict:
    """Loads the backends.yaml file and caches it in memory."""
    global _backend_manifest_cache
    if _backend_manifest_cache is None:
        logger.info(f"Cache miss. Loading {BACKENDS_FILENAME} from disk...")
        manifest_path = Path(BACKENDS_FILENAME)
        if not manifest_path.is_file():
            raise ConfigurationError(f"{BACKENDS_FILENAME} not found in the working directory.")
        try:
            with manifest_path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            _backend_manifest_cache = BackendManifest.model_validate(raw).model_dump()
        except yaml.YAMLError as e:
            logger.exception(f"Failed to parse {BACKENDS_FILENAME}")
            raise ConfigurationError(f"Invalid YAML in {BACKENDS_FILENAME}: {e}") from e
        except ValidationError as e:
            raise ConfigurationError(
                f"{BACKENDS_FILENAME} must contain a 'backends' list: {e}"
            ) from e
    return _backend_manifest_cache


def _placeholder(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return value[2:-1].strip()
    return None


def _resolve_secrets(profile_name: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    """Replace ``${NAME}`` placeholders with values from `Settings`.

    An unset secret leaves the field out, so the profile model falls back
    to its default (API keys default to None until the first request).
    """
    resolved: Dict[str, Any] = {}
    for key, value in raw.items():
        name = _placeholder(value)
        if name is None:
            resolved[key] = value
            continue
        secret = getattr(settings, name.upper(), None)
        if secret is not None:
            resolved[key] = secret
        else:
            logger.warning(
                f"Backend '{profile_name}': ${{{name}}} is not set in the environment or .env",
                extra={"field": key},
            )
    return resolved


def list_backend_profiles() -> List[Dict[str, Any]]:
    """Profiles as written in backends.yaml, secrets left unresolved."""
    return [dict(b) for b in _load_manifest_from_file().get("backends", [])]


def get_backend_config(profile_name: str) -> BaseBackendConfig:
    """Return the typed, secret-resolved configuration of one profile.

    :raises ConfigurationError: if the profile is missing, has an unknown
        type, or fails validation.
    """
    profiles = {p.get("profile_name"): p for p in list_backend_profiles()}
    if profile_name not in profiles:
        raise ConfigurationError(
            f"Backend profile '{profile_name}' not found in {BACKENDS_FILENAME}."
        )

    backend_config = _resolve_secrets(profile_name, profiles[profile_name])
    backend_type = backend_config.get("type")
    model_cls = _BACKEND_TYPES.get(backend_type)
    if model_cls is None:
        raise ConfigurationError(
            f"Unknown backend type '{backend_type}' in profile '{profile_name}'."
        )
    try:
        return model_cls(**backend_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration for backend profile '{profile_name}': {e}"
        ) from e


def clear_backend_manifest_cache() -> None:
    """Forget the parsed backends.yaml so the next lookup re-reads it."""
    global _backend_manifest_cache
    _backend_manifest_cache = None
    logger.info(f"Cleared {BACKENDS_FILENAME} cache.")
