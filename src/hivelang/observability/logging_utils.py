from __future__ import annotations

import os
from typing import Any, Dict

REDACTED = "[REDACTED]"

_SENSITIVE_KEYS = {
    "email",
    "to",
    "phone",
    "authorization",
    "access_token",
    "api_key",
    "apikey",
    "password",
    "secret",
    "token",
}


def _env_bool(name: str, default: bool = True) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def redact_prompt(prompt: str) -> str:
    if not _env_bool("HIVELANG_LOG_REDACT_PROMPTS", True):
        return prompt
    if not prompt:
        return prompt
    return REDACTED


def redact_metadata(meta: Dict[str, Any]) -> Dict[str, Any]:
    if not _env_bool("HIVELANG_LOG_REDACT_METADATA", True):
        return dict(meta)
    redacted: Dict[str, Any] = {}
    for key, value in meta.items():
        if str(key).lower() in _SENSITIVE_KEYS:
            redacted[key] = REDACTED
        else:
            redacted[key] = value
    return redacted


def redact_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply prompt/metadata redaction to step summaries before they leave the engine.
    """

    sanitized = dict(event)
    for key in ("prompt", "content", "message", "input", "text", "value"):
        if key in sanitized and isinstance(sanitized[key], str):
            sanitized[key] = redact_prompt(sanitized[key])
    for key in ("args", "metadata"):
        if key in sanitized and isinstance(sanitized[key], dict):
            sanitized[key] = redact_metadata(sanitized[key])
    return sanitized
