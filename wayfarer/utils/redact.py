"""
Log redaction helpers for tool-call arguments.

Tool calls carry whatever the model decided to type into a page, which may
include passwords, card numbers or one-time codes. These helpers mask such
values before tool arguments are logged.

Usage:
    from wayfarer.utils.redact import redact_tool_args

    logger.info("Executing tool", extra={"args": redact_tool_args(call.name, call.arguments)})

Notes:
- This is **for logs only**. The arguments handed to the driver are never touched.
- Redaction is best-effort; expand the patterns as needed.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

# Substrings in a key or CSS selector that imply the value is sensitive
SENSITIVE_HINTS = [
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "auth",
    "cookie",
    "session",
    "otp",
    "cvv",
    "cvc",
    "card",
    "ssn",
    "pin",
    "credential",
]

# Values that look like secrets regardless of where they are typed
VALUE_PATTERNS = [
    re.compile(r"^Bearer\s+[A-Za-z0-9\-\._~\+\/]+=*$", re.IGNORECASE),
    re.compile(r"^eyJ[a-zA-Z0-9_\-]+?\.[a-zA-Z0-9_\-]+?\.[a-zA-Z0-9_\-]+$"),
    re.compile(r"^(?:\d[ -]?){13,19}$"),  # payment card numbers
    re.compile(r"^sk-[A-Za-z0-9\-_]{16,}$"),
]

REDACTED = "********"


def _looks_sensitive_hint(text: str) -> bool:
    t = text.lower()
    return any(h in t for h in SENSITIVE_HINTS)


def _looks_sensitive_value(val: Any) -> bool:
    if not isinstance(val, str):
        return False
    s = val.strip()
    if not s:
        return False
    return any(rx.search(s) for rx in VALUE_PATTERNS)


def _mask(val: Any) -> Any:
    if isinstance(val, str) and len(val) > 8:
        return f"{REDACTED}({len(val)})"
    return REDACTED


def redact_for_log(obj: Any) -> Any:
    """
    Return a structurally similar object with sensitive material masked.

    Mapping keys are checked against SENSITIVE_HINTS, string values against
    VALUE_PATTERNS; containers are walked recursively.
    """
    if isinstance(obj, Mapping):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if _looks_sensitive_hint(str(k)) or _looks_sensitive_value(v):
                out[k] = _mask(v)
            else:
                out[k] = redact_for_log(v)
        return out
    if isinstance(obj, (list, tuple)):
        return type(obj)(redact_for_log(x) for x in obj)
    if isinstance(obj, str):
        return _mask(obj) if _looks_sensitive_value(obj) else obj
    return obj


def redact_tool_args(tool_name: str, args: Mapping[str, Any]) -> Dict[str, Any]:
    """Mask tool arguments for logging.

    Besides the generic key/value rules, text typed into a field whose
    selector looks sensitive (``#password``, ``input[name=otp]``) is masked,
    both for `type` and for every entry of a `fill_form` mapping.
    """
    safe = redact_for_log(dict(args or {}))
    if tool_name == "type":
        selector = str(args.get("selector", ""))
        if "text" in safe and _looks_sensitive_hint(selector):
            safe["text"] = _mask(args.get("text"))
    elif tool_name == "fill_form":
        fields = args.get("fields")
        if isinstance(fields, Mapping):
            safe["fields"] = {
                sel: (_mask(val) if _looks_sensitive_hint(str(sel)) or _looks_sensitive_value(val) else val)
                for sel, val in fields.items()
            }
    return safe
