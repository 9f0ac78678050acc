"""Error handling framework for the Europarcel MCP adapter.

This package provides:
- Error code registry with E-XXXX format codes
- Europarcel API error translation to friendly messages
- Error and violation formatting utilities

Error categories:
- E-2xxx: Request validation errors
- E-3xxx: Europarcel API errors
- E-4xxx: System/internal errors
- E-5xxx: Authentication errors
"""

from src.errors.api_translation import (
    STATUS_ERROR_MAP,
    extract_field_errors,
    translate_api_error,
)
from src.errors.formatter import (
    EuroparcelError,
    format_error,
    format_violations,
    group_violations,
)
from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # API translation
    "translate_api_error",
    "extract_field_errors",
    "STATUS_ERROR_MAP",
    # Formatter
    "EuroparcelError",
    "format_error",
    "format_violations",
    "group_violations",
]
