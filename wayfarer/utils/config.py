"""
Minimal config loader with caching and gentle fallbacks.

- Reads ./config.yaml if present.
- Merges simple environment overrides (logging.level, agent.inter_tool_delay_s).
- Returns a plain dict so callers can do .get(...) safely.
- Exposes reload_config() for tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

# Config is read while the root logger is being configured, so this module
# cannot go through setup_logger.
logger = logging.getLogger(__name__)

_CONFIG_CACHE: Dict[str, Any] | None = None

CONFIG_FILENAME = "config.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.error("Failed to parse %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    level = os.environ.get("WAYFARER_LOG_LEVEL")
    if level:
        logging_cfg = dict(cfg.get("logging") or {})
        logging_cfg["level"] = level
        cfg["logging"] = logging_cfg

    delay = os.environ.get("WAYFARER_INTER_TOOL_DELAY")
    if delay:
        try:
            agent_cfg = dict(cfg.get("agent") or {})
            agent_cfg["inter_tool_delay_s"] = float(delay)
            cfg["agent"] = agent_cfg
        except ValueError:
            logger.warning("Ignoring non-numeric WAYFARER_INTER_TOOL_DELAY=%r", delay)
    return cfg


def get_config() -> Dict[str, Any]:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    cfg = _read_yaml(Path(CONFIG_FILENAME))
    cfg = _apply_env_overrides(cfg)
    _CONFIG_CACHE = cfg
    return _CONFIG_CACHE


def reload_config() -> Dict[str, Any]:
    """Clear cache and reload (primarily for tests)."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = None
    return get_config()
