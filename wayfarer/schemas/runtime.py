# wayfarer/schemas/runtime.py
"""
Pydantic schema for the agent's runtime tuning knobs.

Values come from the `agent` section of config.yaml (see
`wayfarer.utils.config`); every field has a default so an absent config file
yields a working agent.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from wayfarer.registry import SafetyLevel


class AgentRuntimeConfig(BaseModel):
    """Runtime options shared by every conversation handled by one agent."""

    inter_tool_delay_s: float = Field(
        0.5,
        ge=0.0,
        description="Settling delay between tool calls of a multi-call batch.",
    )
    context_max_content_length: int = Field(
        2000,
        ge=0,
        description="Page text budget for the context refresh at the start of a turn.",
    )
    conversation_max_age_hours: float = Field(
        24.0,
        gt=0,
        description="Conversations idle longer than this are garbage-collected.",
    )
    wait_poll_interval_ms: int = Field(
        100, gt=0, description="Polling interval of wait_for_element."
    )
    context_history_size: int = Field(
        10, ge=1, description="Snapshots kept per page session."
    )
    default_safety_level: SafetyLevel = Field(
        SafetyLevel.SAFE,
        description="Granted level used when a caller does not pass one.",
    )

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "AgentRuntimeConfig":
        """Build from a loaded config dict, reading only its `agent` section."""
        agent_section = (cfg or {}).get("agent") or {}
        return cls.model_validate(agent_section)
