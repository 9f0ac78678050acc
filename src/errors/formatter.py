"""Error formatting and grouping utilities.

This module provides:
- EuroparcelError exception class for application errors
- Error formatting for display to the agent
- Violation grouping so related rule failures read as one block
"""

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import TYPE_CHECKING

from src.errors.registry import get_error

if TYPE_CHECKING:
    from src.services.shipment_rules import ConstraintViolation


@dataclass
class EuroparcelError(Exception):
    """Application error with code, message, and context.

    Attributes:
        code: Error code in E-XXXX format.
        message: Human-readable error message.
        remediation: Action the caller should take to resolve.
        field: Offending field path, if applicable.
        is_retryable: Whether the operation can be retried without changes.
        details: Additional context dictionary.
    """

    code: str
    message: str
    remediation: str
    field: str | None = None
    is_retryable: bool = False
    details: dict = dataclass_field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    @classmethod
    def from_code(cls, code: str, **kwargs: object) -> "EuroparcelError":
        """Create error from registry code with context substitution.

        Args:
            code: Error code in E-XXXX format.
            **kwargs: Values for the message template. The keys 'field'
                and 'details' populate the matching attributes instead.

        Returns:
            EuroparcelError with formatted message.
        """
        field_path = kwargs.get("field")
        if not isinstance(field_path, str):
            field_path = None
        details = kwargs.get("details")
        if not isinstance(details, dict):
            details = {}

        error_def = get_error(code)
        if not error_def:
            return cls(
                code=code,
                message=f"Unknown error: {code}",
                remediation="Contact support.",
                field=field_path,
                details=details,
            )

        template_kwargs = {k: v for k, v in kwargs.items() if k != "field"}
        try:
            message = error_def.message_template.format(**template_kwargs)
        except KeyError:
            message = error_def.message_template

        return cls(
            code=error_def.code,
            message=message,
            remediation=error_def.remediation,
            field=field_path,
            is_retryable=error_def.is_retryable,
            details=details,
        )

    def to_dict(self) -> dict:
        """Serialize for a tool response."""
        result = {
            "error_code": self.code,
            "error": self.message,
            "remediation": self.remediation,
            "retryable": self.is_retryable,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


def format_error(error: EuroparcelError, include_remediation: bool = True) -> str:
    """Format error for display.

    Args:
        error: The EuroparcelError to format.
        include_remediation: Whether to include remediation steps.

    Returns:
        Multi-line formatted string.
    """
    lines = [f"{error.code}: {error.message}"]
    if error.field:
        lines.append(f"  Field: {error.field}")
    if include_remediation:
        lines.append(f"  Action: {error.remediation}")
    return "\n".join(lines)


def group_violations(
    violations: list["ConstraintViolation"],
) -> dict[str, list["ConstraintViolation"]]:
    """Group violations by error code, preserving first-seen order.

    Example:
        Three PARCEL_SEQUENCE_GAP violations and one WEIGHT_SUM_MISMATCH
        -> {"E-2003": [4 violations]}
    """
    groups: dict[str, list] = {}
    for violation in violations:
        groups.setdefault(violation.error_code, []).append(violation)
    return groups


def format_violations(violations: list["ConstraintViolation"]) -> str:
    """Format a violation list as a readable checklist.

    Args:
        violations: Output of shipment_rules.validate().

    Returns:
        Text listing every violation under its error title, followed by
        the remediation for that group.
    """
    if not violations:
        return "No violations."

    groups = group_violations(violations)
    lines = [f"Request has {len(violations)} problem(s):", ""]
    for code, items in groups.items():
        error_def = get_error(code)
        title = error_def.title if error_def else code
        lines.append(f"{code} {title}")
        for violation in items:
            lines.append(f"  - {violation.field_path}: {violation.message}")
        if error_def:
            lines.append(f"  Action: {error_def.remediation}")
        lines.append("")
    return "\n".join(lines).rstrip()
