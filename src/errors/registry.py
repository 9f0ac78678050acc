"""Error code registry with E-XXXX format codes.

Errors are organized into categories:
- E-2xxx: Request validation errors
- E-3xxx: Europarcel API errors
- E-4xxx: System/internal errors
- E-5xxx: Authentication errors

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    VALIDATION = "validation"  # E-2xxx
    API = "api"  # E-3xxx
    SYSTEM = "system"  # E-4xxx
    AUTH = "auth"  # E-5xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action the caller should take to resolve.
        is_retryable: Whether the operation can be retried without changes.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Validation errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.VALIDATION,
        title="Invalid Carrier, Service or Billing",
        message_template="{details}",
        remediation="Use get_carriers, get_services and get_billing_addresses to pick valid ids.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.VALIDATION,
        title="Invalid Content Type",
        message_template="{details}",
        remediation="Set exactly one of envelopes_count, pallets_count or parcels_count above 0.",
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.VALIDATION,
        title="Invalid Parcels",
        message_template="{details}",
        remediation=(
            "Provide one parcel per parcels_count with sequence_no 1, 2, 3... "
            "and make total_weight equal the sum of parcel weights."
        ),
    ),
    "E-2004": ErrorCode(
        code="E-2004",
        category=ErrorCategory.VALIDATION,
        title="Missing Parcel Content",
        message_template="{details}",
        remediation="Describe the package content in extra.parcel_content.",
    ),
    "E-2005": ErrorCode(
        code="E-2005",
        category=ErrorCategory.VALIDATION,
        title="Invalid Insurance",
        message_template="{details}",
        remediation="Set insurance_amount_currency (e.g. 'RON') whenever insurance_amount > 0.",
    ),
    "E-2006": ErrorCode(
        code="E-2006",
        category=ErrorCategory.VALIDATION,
        title="Invalid Cash on Delivery",
        message_template="{details}",
        remediation="Set bank_repayment_currency and bank_iban whenever bank_repayment_amount > 0.",
    ),
    "E-2007": ErrorCode(
        code="E-2007",
        category=ErrorCategory.VALIDATION,
        title="Invalid Address",
        message_template="{details}",
        remediation="Use an address_id from get_shipping_addresses/get_delivery_addresses or give full details.",
    ),
    "E-2008": ErrorCode(
        code="E-2008",
        category=ErrorCategory.VALIDATION,
        title="Fixed Location Mismatch",
        message_template="{details}",
        remediation=(
            "Service 1&5: no fixed locations. Service 2: delivery locker. "
            "Service 3: pickup locker. Service 4: both. Use get_fixed_locations."
        ),
    ),
    "E-2009": ErrorCode(
        code="E-2009",
        category=ErrorCategory.VALIDATION,
        title="Malformed Request",
        message_template="{details}",
        remediation="Check field names and value types against the tool description.",
    ),
    "E-2010": ErrorCode(
        code="E-2010",
        category=ErrorCategory.VALIDATION,
        title="Invalid Tool Argument",
        message_template="{details}",
        remediation="Correct the argument and call the tool again.",
    ),
    # Europarcel API errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.API,
        title="Europarcel Service Unavailable",
        message_template="Europarcel API is not responding: {api_message}",
        remediation="Wait a few minutes and retry.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.API,
        title="Europarcel Rate Limit Exceeded",
        message_template="Too many requests to the Europarcel API.",
        remediation="Wait 60 seconds and retry.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.API,
        title="Europarcel Rejected Request",
        message_template="Europarcel rejected the request: {api_message}",
        remediation="Fix the listed fields. Use calculate_prices first to validate an order.",
    ),
    "E-3004": ErrorCode(
        code="E-3004",
        category=ErrorCategory.API,
        title="Resource Not Found",
        message_template="Europarcel could not find the resource: {api_message}",
        remediation="Verify the id or AWB belongs to your account.",
    ),
    "E-3005": ErrorCode(
        code="E-3005",
        category=ErrorCategory.API,
        title="Europarcel Unknown Error",
        message_template="Europarcel returned an unexpected error: {api_message}",
        remediation="Retry later. Contact Europarcel support if the error persists.",
    ),
    "E-3006": ErrorCode(
        code="E-3006",
        category=ErrorCategory.API,
        title="Network Error",
        message_template="Could not reach the Europarcel API: {api_message}",
        remediation="Check network connectivity and retry.",
        is_retryable=True,
    ),
    "E-3007": ErrorCode(
        code="E-3007",
        category=ErrorCategory.API,
        title="Insufficient Funds",
        message_template="Europarcel declined the order: {api_message}",
        remediation="Top up your wallet balance and retry.",
    ),
    # System errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Configuration Error",
        message_template="Invalid configuration: {details}",
        remediation="Check europarcel.yaml and EUROPARCEL_* environment variables.",
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.SYSTEM,
        title="Internal Error",
        message_template="Unexpected internal error: {details}",
        remediation="Retry the operation. Report the issue if it persists.",
        is_retryable=True,
    ),
    # Auth errors (E-5xxx)
    "E-5001": ErrorCode(
        code="E-5001",
        category=ErrorCategory.AUTH,
        title="Europarcel Authentication Failed",
        message_template="The Europarcel API key was rejected.",
        remediation="Check EUROPARCEL_API_KEY.",
    ),
    "E-5002": ErrorCode(
        code="E-5002",
        category=ErrorCategory.AUTH,
        title="Europarcel Access Denied",
        message_template="The API key is not allowed to perform this operation.",
        remediation="Verify the account permissions for this API key.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category."""
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
