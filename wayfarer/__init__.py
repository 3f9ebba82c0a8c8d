"""
Wayfarer core package.

Lets a conversational model drive a live browser page: page-context
extraction, a safety-gated tool catalog, per-backend provider adapters and
the conversation loop that ties them together.
"""

__version__ = "0.3.0"

__all__ = [
    "agents",
    "context",
    "executors",
    "providers",
    "registry",
    "schemas",
    "utils",
]
