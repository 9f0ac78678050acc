"""Europarcel API error translation to friendly messages.

Maps HTTP status codes, Europarcel error kinds and message text to the
E-code registry so the agent gets an actionable remediation alongside the
API's own message.
"""

from typing import Any

from src.errors.registry import get_error


# HTTP status -> E-code. Status 0 means no response was received.
STATUS_ERROR_MAP: dict[int, str] = {
    0: "E-3006",
    400: "E-3003",
    401: "E-5001",
    402: "E-3007",
    403: "E-5002",
    404: "E-3004",
    422: "E-3003",
    429: "E-3002",
    500: "E-3005",
    502: "E-3001",
    503: "E-3001",
    504: "E-3001",
}

# Europarcel `error` field values (and client-side kinds) -> E-code
ERROR_KIND_MAP: dict[str, str] = {
    "NETWORK_ERROR": "E-3006",
    "REQUEST_ERROR": "E-3006",
    "UNAUTHORIZED": "E-5001",
    "FORBIDDEN": "E-5002",
    "NOT_FOUND": "E-3004",
    "VALIDATION_ERROR": "E-3003",
    "INSUFFICIENT_FUNDS": "E-3007",
    "RATE_LIMIT_EXCEEDED": "E-3002",
}

API_MESSAGE_PATTERNS: dict[str, str] = {
    "insufficient": "E-3007",
    "wallet balance": "E-3007",
    "rate limit": "E-3002",
    "too many requests": "E-3002",
    "not found": "E-3004",
    "api key": "E-5001",
    "unauthenticated": "E-5001",
}


def translate_api_error(
    status: int | None,
    error_kind: str | None,
    api_message: str | None,
) -> tuple[str, str, str]:
    """Translate a Europarcel API failure.

    Lookup order: error kind, then message pattern, then HTTP status.

    Args:
        status: HTTP status code (0 when no response was received).
        error_kind: Europarcel `error` field, e.g. "VALIDATION_ERROR".
        api_message: Europarcel `message` field.

    Returns:
        Tuple of (error_code, formatted_message, remediation).
    """
    code = None
    if error_kind:
        code = ERROR_KIND_MAP.get(error_kind.upper())
    if code is None and api_message:
        lowered = api_message.lower()
        for pattern, mapped in API_MESSAGE_PATTERNS.items():
            if pattern in lowered:
                code = mapped
                break
    if code is None and status is not None:
        code = STATUS_ERROR_MAP.get(status)
        if code is None and status >= 500:
            code = "E-3001"
    if code is None:
        code = "E-3005"

    error = get_error(code)
    message = _format_message(
        error.message_template,
        api_message=api_message or error_kind or f"HTTP {status}",
    )
    return (error.code, message, error.remediation)


def _format_message(template: str, **kwargs: object) -> str:
    """Format a message template, keeping it verbatim if keys are missing."""
    try:
        return template.format(**kwargs)
    except KeyError:
        return template


def extract_field_errors(body: Any) -> dict[str, list[str]]:
    """Extract per-field validation messages from an API error body.

    Europarcel reports 400/422 failures as
    ``{"message": ..., "errors": {"field": ["msg", ...]}}``.

    Returns:
        Mapping of field path to messages; empty when absent.
    """
    if not isinstance(body, dict):
        return {}
    errors = body.get("errors")
    if not isinstance(errors, dict):
        details = body.get("details")
        errors = details.get("errors") if isinstance(details, dict) else None
    if not isinstance(errors, dict):
        return {}

    result: dict[str, list[str]] = {}
    for field, messages in errors.items():
        if isinstance(messages, list):
            result[str(field)] = [str(m) for m in messages]
        else:
            result[str(field)] = [str(messages)]
    return result
