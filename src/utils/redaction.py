"""Redaction of secrets and banking data before logging.

Request bodies sent to Europarcel can carry an IBAN and the client sends the
API key in a header. Anything logged at debug level or attached to an error
passes through here first. Key matching is a case-insensitive substring test.
"""

import re
from typing import Any

SENSITIVE_KEY_PARTS = frozenset({
    "api_key", "api-key", "apikey", "authorization", "token", "secret",
    "password", "iban",
})

# Whole value replaced, whatever it holds
_OPAQUE_KEYS = frozenset({"headers"})

MASK = "***REDACTED***"


def _should_mask(key: Any, key_parts: frozenset[str]) -> bool:
    name = str(key).lower()
    return name in _OPAQUE_KEYS or any(part in name for part in key_parts)


def _redact(value: Any, key_parts: frozenset[str]) -> Any:
    if isinstance(value, dict):
        return {
            key: MASK if _should_mask(key, key_parts) else _redact(item, key_parts)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item, key_parts) for item in value]
    return value


def redact_for_logging(
    obj: dict,
    sensitive_patterns: frozenset[str] = SENSITIVE_KEY_PARTS,
) -> dict:
    """Return a copy of ``obj`` with sensitive values masked.

    Nested dicts are walked at any depth, including dicts inside lists.
    The input is never mutated.
    """
    return _redact(obj, sensitive_patterns)


_SECRET_NAMES = r"x-api-key|api_key|apikey|token|secret|password|iban"
_INLINE_SECRET = re.compile(
    r"(?i)"
    r'"(?:' + _SECRET_NAMES + r')"\s*:\s*"[^"]*"'  # "iban": "RO49..."
    r"|(?:" + _SECRET_NAMES + r")\s*[=:]\s*\S+"  # api_key=..., token: ...
)


def sanitize_message(msg: str | None, max_length: int = 2000) -> str | None:
    """Mask inline secrets in free text and cap its length."""
    if msg is None:
        return None
    cleaned = _INLINE_SECRET.sub(MASK, msg)
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[:max_length - 3] + "..."
