"""Shared helpers for Europarcel MCP tools.

Tools never raise to the MCP layer for expected failures. Argument
problems, rule violations and API errors all come back as
``{"success": False, ...}`` dicts built here.
"""

from typing import Any

from fastmcp import Context

from src.errors import (
    EuroparcelError,
    extract_field_errors,
    format_violations,
    get_error,
    translate_api_error,
)
from src.mcp.europarcel.client import EuroparcelAPIError, EuroparcelClient
from src.services.shipment_rules import ConstraintViolation, StructuralError
from src.utils.redaction import sanitize_message


class ToolArgumentError(ValueError):
    """A tool argument failed validation before any network call."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


def _get_lifespan_context(ctx: Context) -> dict:
    """Get the lifespan context from the request context.

    Raises:
        RuntimeError: If request context not available
    """
    if ctx.request_context is None:
        raise RuntimeError("Request context not available")
    return ctx.request_context.lifespan_context


def get_client(ctx: Context) -> EuroparcelClient:
    """Return the shared EuroparcelClient created by the server lifespan."""
    return _get_lifespan_context(ctx)["client"]


def coerce_id(value: Any, name: str, required: bool = True) -> int | None:
    """Parse an identifier given as int or numeric string.

    Args:
        value: Raw argument value.
        name: Argument name, used in the error message.
        required: Whether None is rejected.

    Returns:
        Positive int, or None when optional and absent.

    Raises:
        ToolArgumentError: If the value is not a positive integer.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ToolArgumentError(f"{name} is required", field=name)
        return None
    if isinstance(value, bool):
        raise ToolArgumentError(f"{name} must be a positive integer", field=name)
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ToolArgumentError(f"{name} must be a positive integer", field=name)
    if parsed <= 0:
        raise ToolArgumentError(f"{name} must be a positive integer", field=name)
    return parsed


def coerce_country_code(value: Any, name: str = "country_code") -> str:
    """Normalize a two-letter country code to upper case."""
    if not isinstance(value, str) or len(value.strip()) != 2 or not value.strip().isalpha():
        raise ToolArgumentError(f"{name} must be a 2-letter country code", field=name)
    return value.strip().upper()


def argument_error(exc: ToolArgumentError) -> dict:
    """Build the failure response for a rejected tool argument."""
    error = EuroparcelError.from_code("E-2010", details=str(exc), field=exc.field)
    return {"success": False, **error.to_dict()}


def api_error(exc: EuroparcelAPIError) -> dict:
    """Build the failure response for a Europarcel API error."""
    code, message, remediation = translate_api_error(exc.status, exc.error, exc.message)
    details: dict[str, Any] = {"status": exc.status, "api_error": exc.error}
    field_errors = extract_field_errors(exc.details)
    if field_errors:
        details["field_errors"] = field_errors
    error = EuroparcelError(
        code=code,
        message=sanitize_message(message) or message,
        remediation=remediation,
        is_retryable=get_error(code).is_retryable,
        details=details,
    )
    return {"success": False, **error.to_dict()}


def violations_error(violations: list[ConstraintViolation]) -> dict:
    """Build the failure response for a request that broke business rules.

    ``error_code`` is the code of the first violation; every violation is
    listed under ``violations``.
    """
    first = get_error(violations[0].error_code)
    return {
        "success": False,
        "error_code": first.code,
        "error": format_violations(violations),
        "remediation": first.remediation,
        "retryable": False,
        "violations": [v.to_dict() for v in violations],
    }


def structural_error(exc: StructuralError) -> dict:
    """Build the failure response for a request with the wrong shape."""
    error = EuroparcelError.from_code("E-2009", details=str(exc), field=exc.field_path)
    return {"success": False, **error.to_dict()}


def success(summary: str, **data: Any) -> dict:
    """Build a success response carrying a text summary and raw data."""
    return {"success": True, "summary": summary, **data}
