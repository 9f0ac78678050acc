"""Shipment request rules engine for Europarcel pricing and order creation.

Normalizes caller-supplied requests and validates them against the business
rules of the target operation. Both steps are pure: no I/O, no shared state.

    request = normalize(raw)                       # may raise StructuralError
    violations = validate(request, ORDER_RULES)    # [] means valid

Validation never stops at the first problem. Every applicable rule runs so
the caller can fix all issues in one pass.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from src.services.shipment_request import (
    AddressRef,
    ContentKind,
    ShipmentContent,
    ShipmentRequest,
    TrackingRequest,
)

DEFAULT_TRACKING_LANGUAGE = "ro"

WEIGHT_TOLERANCE = 0.01
MAX_ENVELOPES = 1
MAX_PARCEL_WEIGHT = 31.0
MAX_PARCEL_DIMENSION = 100.0
MAX_PARCEL_CONTENT_LENGTH = 100
IBAN_LENGTH_RANGE = (15, 34)
BANK_HOLDER_LENGTH_RANGE = (5, 70)

# Carriers accepted by the order endpoint:
# 1=Cargus, 2=DPD, 3=FAN Courier, 4=GLS, 6=Sameday, 16=Bookurier
KNOWN_CARRIER_IDS: frozenset[int] = frozenset({1, 2, 3, 4, 6, 16})


@dataclass(frozen=True)
class FixedLocationRequirement:
    """Which ends of a shipment must be a locker/pickup point."""

    pickup: bool
    delivery: bool


# service_id -> (address_from.fixed_location_id, address_to.fixed_location_id)
SERVICE_FIXED_LOCATIONS: dict[int, FixedLocationRequirement] = {
    1: FixedLocationRequirement(pickup=False, delivery=False),  # home to home
    2: FixedLocationRequirement(pickup=False, delivery=True),   # home to locker
    3: FixedLocationRequirement(pickup=True, delivery=False),   # locker to home
    4: FixedLocationRequirement(pickup=True, delivery=True),    # locker to locker
    5: FixedLocationRequirement(pickup=False, delivery=False),
}


class StructuralError(ValueError):
    """Request has the wrong type or shape and cannot be validated."""

    def __init__(self, message: str, field_path: str | None = None) -> None:
        super().__init__(message)
        self.field_path = field_path


@dataclass(frozen=True)
class ConstraintViolation:
    """A broken business rule.

    Attributes:
        machine_code: Machine-readable code (e.g. PARCEL_SEQUENCE_GAP).
        message: Human-readable reason.
        field_path: Dotted path of the offending field.
        error_code: E-code from src.errors.registry.
    """

    machine_code: str
    message: str
    field_path: str
    error_code: str = "E-2001"

    def to_dict(self) -> dict[str, str]:
        return {
            "field": self.field_path,
            "code": self.machine_code,
            "message": self.message,
            "error_code": self.error_code,
        }


@dataclass(frozen=True)
class OperationRules:
    """Per-operation limits. ``None`` means unrestricted."""

    name: str
    allowed_content_kinds: frozenset[ContentKind]
    allowed_service_ids: frozenset[int]
    allowed_carrier_ids: frozenset[int] | None = None
    max_parcels: int | None = None
    max_insurance_amount: float | None = None
    max_repayment_amount: float | None = None


PRICING_RULES = OperationRules(
    name="pricing",
    allowed_content_kinds=frozenset(ContentKind),
    allowed_service_ids=frozenset(SERVICE_FIXED_LOCATIONS),
)

ORDER_RULES = OperationRules(
    name="order",
    allowed_content_kinds=frozenset({ContentKind.ENVELOPE, ContentKind.PARCEL}),
    allowed_service_ids=frozenset({1, 2, 3, 4}),
    allowed_carrier_ids=KNOWN_CARRIER_IDS,
    max_parcels=10,
    max_insurance_amount=10000,
    max_repayment_amount=7000,
)

OPERATION_RULES: dict[str, OperationRules] = {
    PRICING_RULES.name: PRICING_RULES,
    ORDER_RULES.name: ORDER_RULES,
}


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _format_location(loc: tuple) -> str:
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts[-1:] = [f"{parts[-1]}[{item}]"] if parts else [f"[{item}]"]
        else:
            parts.append(str(item))
    return ".".join(parts)


def _parse(model: type, raw: Any):
    """Build a request model, turning shape errors into StructuralError."""
    if isinstance(raw, model):
        return raw
    if not isinstance(raw, Mapping):
        raise StructuralError(
            f"Request must be an object, got {type(raw).__name__}"
        )
    try:
        return model.model_validate(dict(raw))
    except PydanticValidationError as e:
        first = e.errors()[0]
        path = _format_location(first.get("loc", ()))
        raise StructuralError(
            f"Malformed request at '{path}': {first.get('msg', 'invalid value')}",
            field_path=path or None,
        ) from e


def normalize(raw: Mapping[str, Any] | ShipmentRequest) -> ShipmentRequest:
    """Return an API-ready ShipmentRequest with defaults applied.

    Only ``content.parcels`` is filled (with an empty list) when absent.
    No business value is ever guessed. Does not validate.

    Raises:
        StructuralError: If the input has the wrong type or shape.
    """
    request = _parse(ShipmentRequest, raw)
    if request.content is not None and request.content.parcels is None:
        request = request.model_copy(
            update={"content": request.content.model_copy(update={"parcels": []})}
        )
    return request


def normalize_language(language: str | None) -> str:
    """Lower-case the tracking language; absent or blank means Romanian."""
    if language is None or not str(language).strip():
        return DEFAULT_TRACKING_LANGUAGE
    return str(language).strip().lower()


def normalize_tracking(raw: Mapping[str, Any] | TrackingRequest) -> TrackingRequest:
    """Return a TrackingRequest with the language default applied."""
    request = _parse(TrackingRequest, raw)
    language = normalize_language(request.language)
    if language != request.language:
        request = request.model_copy(update={"language": language})
    return request


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _is_currency_code(value: str | None) -> bool:
    return bool(value) and len(value) == 3 and value.isalpha() and value.isupper()


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _check_identification(
    request: ShipmentRequest,
    rules: OperationRules,
    errors: list[ConstraintViolation],
) -> None:
    carrier_id = request.carrier_id
    if carrier_id is None or carrier_id <= 0:
        errors.append(ConstraintViolation(
            "MISSING_CARRIER_ID",
            "carrier_id is required and must be greater than 0.",
            "carrier_id",
        ))
    elif rules.allowed_carrier_ids is not None and carrier_id not in rules.allowed_carrier_ids:
        allowed = ", ".join(str(c) for c in sorted(rules.allowed_carrier_ids))
        errors.append(ConstraintViolation(
            "UNSUPPORTED_CARRIER",
            f"carrier_id {carrier_id} is not supported for {rules.name}. Allowed: {allowed}.",
            "carrier_id",
        ))

    service_id = request.service_id
    if service_id is None or service_id <= 0:
        errors.append(ConstraintViolation(
            "MISSING_SERVICE_ID",
            "service_id is required and must be greater than 0.",
            "service_id",
        ))
    elif service_id not in rules.allowed_service_ids:
        allowed = ", ".join(str(s) for s in sorted(rules.allowed_service_ids))
        errors.append(ConstraintViolation(
            "UNSUPPORTED_SERVICE",
            f"service_id {service_id} is not supported for {rules.name}. Allowed: {allowed}.",
            "service_id",
        ))

    billing_id = request.billing_to.billing_address_id if request.billing_to else None
    if billing_id is None or billing_id <= 0:
        errors.append(ConstraintViolation(
            "MISSING_BILLING_ADDRESS",
            "billing_to.billing_address_id is required and must be greater than 0.",
            "billing_to.billing_address_id",
        ))


def _check_content(
    content: ShipmentContent | None,
    rules: OperationRules,
    errors: list[ConstraintViolation],
) -> None:
    if content is None:
        errors.append(ConstraintViolation(
            "MISSING_CONTENT", "content is required.", "content", "E-2002",
        ))
        return

    for kind in ContentKind:
        count = content.count_for(kind)
        field_path = f"content.{kind.value}s_count"
        if count < 0:
            errors.append(ConstraintViolation(
                "NEGATIVE_COUNT", f"{kind.value}s_count cannot be negative.",
                field_path, "E-2002",
            ))
        elif count > 0 and kind not in rules.allowed_content_kinds:
            errors.append(ConstraintViolation(
                "CONTENT_KIND_NOT_ALLOWED",
                f"{kind.value}s are not accepted for {rules.name}.",
                field_path, "E-2002",
            ))

    nonzero = [kind for kind in ContentKind if content.count_for(kind) > 0]
    if len(nonzero) != 1:
        names = "/".join(f"{k.value}s" for k in ContentKind if k in rules.allowed_content_kinds)
        errors.append(ConstraintViolation(
            "CONTENT_NOT_EXCLUSIVE",
            f"Exactly one of {names} count must be greater than 0 "
            f"(got {len(nonzero)}).",
            "content", "E-2002",
        ))

    if content.envelopes_count > MAX_ENVELOPES:
        errors.append(ConstraintViolation(
            "TOO_MANY_ENVELOPES",
            f"envelopes_count cannot exceed {MAX_ENVELOPES}.",
            "content.envelopes_count", "E-2002",
        ))

    if content.total_weight is None or content.total_weight <= 0:
        errors.append(ConstraintViolation(
            "INVALID_TOTAL_WEIGHT",
            "total_weight is required and must be greater than 0.",
            "content.total_weight", "E-2003",
        ))


def _check_parcels(
    content: ShipmentContent | None,
    rules: OperationRules,
    errors: list[ConstraintViolation],
) -> None:
    if content is None:
        return

    parcels = content.parcels or []
    if content.parcels_count <= 0:
        if parcels:
            errors.append(ConstraintViolation(
                "UNEXPECTED_PARCELS",
                "parcels must be empty unless parcels_count is greater than 0.",
                "content.parcels", "E-2003",
            ))
        return

    if rules.max_parcels is not None and content.parcels_count > rules.max_parcels:
        errors.append(ConstraintViolation(
            "TOO_MANY_PARCELS",
            f"parcels_count cannot exceed {rules.max_parcels} for {rules.name}.",
            "content.parcels_count", "E-2003",
        ))

    if not parcels:
        errors.append(ConstraintViolation(
            "MISSING_PARCELS",
            "parcels array is required when parcels_count > 0.",
            "content.parcels", "E-2003",
        ))
        return

    if len(parcels) != content.parcels_count:
        errors.append(ConstraintViolation(
            "PARCEL_COUNT_MISMATCH",
            f"parcels array has {len(parcels)} item(s) but parcels_count is "
            f"{content.parcels_count}.",
            "content.parcels", "E-2003",
        ))

    for position, parcel in enumerate(parcels, start=1):
        prefix = f"content.parcels[{position - 1}]"
        if parcel.sequence_no != position:
            errors.append(ConstraintViolation(
                "PARCEL_SEQUENCE_GAP",
                f"Parcel sequence numbers must be consecutive starting from 1: "
                f"expected {position}, got {parcel.sequence_no}.",
                f"{prefix}.sequence_no", "E-2003",
            ))
        size = parcel.size
        if not 0 <= size.weight <= MAX_PARCEL_WEIGHT:
            errors.append(ConstraintViolation(
                "PARCEL_WEIGHT_OUT_OF_RANGE",
                f"Parcel {position} weight must be between 0 and "
                f"{MAX_PARCEL_WEIGHT:g} kg.",
                f"{prefix}.size.weight", "E-2003",
            ))
        for dimension in ("width", "height", "length"):
            value = getattr(size, dimension)
            if not 0 <= value <= MAX_PARCEL_DIMENSION:
                errors.append(ConstraintViolation(
                    "PARCEL_DIMENSION_OUT_OF_RANGE",
                    f"Parcel {position} {dimension} must be between 0 and "
                    f"{MAX_PARCEL_DIMENSION:g} cm.",
                    f"{prefix}.size.{dimension}", "E-2003",
                ))

    if content.total_weight is not None:
        parcel_sum = math.fsum(p.size.weight for p in parcels)
        if abs(parcel_sum - content.total_weight) > WEIGHT_TOLERANCE:
            errors.append(ConstraintViolation(
                "WEIGHT_SUM_MISMATCH",
                f"total_weight ({content.total_weight:g}) must equal the sum of "
                f"parcel weights ({parcel_sum:g}).",
                "content.total_weight", "E-2003",
            ))


def _check_extra(request: ShipmentRequest, rules: OperationRules,
                 errors: list[ConstraintViolation]) -> None:
    extra = request.extra
    if extra is None or _blank(extra.parcel_content):
        errors.append(ConstraintViolation(
            "MISSING_PARCEL_CONTENT",
            "extra.parcel_content is required.",
            "extra.parcel_content", "E-2004",
        ))
        if extra is None:
            return
    elif len(extra.parcel_content) > MAX_PARCEL_CONTENT_LENGTH:
        errors.append(ConstraintViolation(
            "PARCEL_CONTENT_TOO_LONG",
            f"extra.parcel_content cannot exceed {MAX_PARCEL_CONTENT_LENGTH} characters.",
            "extra.parcel_content", "E-2004",
        ))

    # Insurance
    insurance = extra.insurance_amount or 0
    if insurance < 0:
        errors.append(ConstraintViolation(
            "NEGATIVE_AMOUNT", "insurance_amount cannot be negative.",
            "extra.insurance_amount", "E-2005",
        ))
    if rules.max_insurance_amount is not None and insurance > rules.max_insurance_amount:
        errors.append(ConstraintViolation(
            "INSURANCE_TOO_HIGH",
            f"insurance_amount cannot exceed {rules.max_insurance_amount:g}.",
            "extra.insurance_amount", "E-2005",
        ))
    if insurance > 0 and _blank(extra.insurance_amount_currency):
        errors.append(ConstraintViolation(
            "MISSING_INSURANCE_CURRENCY",
            "insurance_amount_currency is required when insurance_amount > 0.",
            "extra.insurance_amount_currency", "E-2005",
        ))
    elif extra.insurance_amount_currency is not None and not _is_currency_code(
        extra.insurance_amount_currency
    ):
        errors.append(ConstraintViolation(
            "INVALID_CURRENCY",
            "insurance_amount_currency must be 3 uppercase letters (e.g. 'RON').",
            "extra.insurance_amount_currency", "E-2005",
        ))

    # Cash on delivery
    repayment = extra.bank_repayment_amount or 0
    if repayment < 0:
        errors.append(ConstraintViolation(
            "NEGATIVE_AMOUNT", "bank_repayment_amount cannot be negative.",
            "extra.bank_repayment_amount", "E-2006",
        ))
    if rules.max_repayment_amount is not None and repayment > rules.max_repayment_amount:
        errors.append(ConstraintViolation(
            "REPAYMENT_TOO_HIGH",
            f"bank_repayment_amount cannot exceed {rules.max_repayment_amount:g}.",
            "extra.bank_repayment_amount", "E-2006",
        ))
    if repayment > 0:
        if _blank(extra.bank_repayment_currency):
            errors.append(ConstraintViolation(
                "MISSING_REPAYMENT_CURRENCY",
                "bank_repayment_currency is required when bank_repayment_amount > 0.",
                "extra.bank_repayment_currency", "E-2006",
            ))
        if _blank(extra.bank_iban):
            errors.append(ConstraintViolation(
                "MISSING_BANK_IBAN",
                "bank_iban is required when bank_repayment_amount > 0.",
                "extra.bank_iban", "E-2006",
            ))
    if not _blank(extra.bank_repayment_currency) and not _is_currency_code(
        extra.bank_repayment_currency
    ):
        errors.append(ConstraintViolation(
            "INVALID_CURRENCY",
            "bank_repayment_currency must be 3 uppercase letters (e.g. 'RON').",
            "extra.bank_repayment_currency", "E-2006",
        ))
    if not _blank(extra.bank_iban):
        low, high = IBAN_LENGTH_RANGE
        if not low <= len(extra.bank_iban.replace(" ", "")) <= high:
            errors.append(ConstraintViolation(
                "INVALID_IBAN",
                f"bank_iban must be between {low} and {high} characters.",
                "extra.bank_iban", "E-2006",
            ))
    if not _blank(extra.bank_holder):
        low, high = BANK_HOLDER_LENGTH_RANGE
        if not low <= len(extra.bank_holder.strip()) <= high:
            errors.append(ConstraintViolation(
                "INVALID_BANK_HOLDER",
                f"bank_holder must be between {low} and {high} characters.",
                "extra.bank_holder", "E-2006",
            ))


def _check_address(
    address: AddressRef | None,
    field_name: str,
    errors: list[ConstraintViolation],
) -> None:
    if address is None:
        errors.append(ConstraintViolation(
            "MISSING_ADDRESS", f"{field_name} is required.", field_name, "E-2007",
        ))
        return
    if address.reference_id is not None:
        if address.reference_id <= 0:
            errors.append(ConstraintViolation(
                "INVALID_ADDRESS_REFERENCE",
                f"{field_name} address id must be greater than 0.",
                field_name, "E-2007",
            ))
        return

    missing = [
        name for name in ("contact", "phone", "email", "country_code")
        if _blank(getattr(address, name))
    ]
    # A locker end does not need a street.
    if address.fixed_location_id is None:
        missing += [
            name for name in ("street_name", "street_number")
            if _blank(getattr(address, name))
        ]
    has_locality = (
        address.locality_id is not None
        or not _blank(address.postal_code)
        or (not _blank(address.locality_name) and not _blank(address.county_name))
    )
    if not has_locality:
        missing.append("locality_id|postal_code|locality_name+county_name")
    if missing:
        errors.append(ConstraintViolation(
            "INCOMPLETE_ADDRESS",
            f"{field_name} must reference an existing address or include: "
            f"{', '.join(missing)}.",
            field_name, "E-2007",
        ))


def _check_fixed_locations(
    request: ShipmentRequest,
    errors: list[ConstraintViolation],
) -> None:
    requirement = SERVICE_FIXED_LOCATIONS.get(request.service_id or 0)
    if requirement is None:
        # Unknown service; reported by the identification check.
        return
    ends = (
        ("address_from", request.address_from, requirement.pickup, "pickup"),
        ("address_to", request.address_to, requirement.delivery, "delivery"),
    )
    for field_name, address, required, role in ends:
        present = address is not None and address.fixed_location_id is not None
        path = f"{field_name}.fixed_location_id"
        if required and not present:
            errors.append(ConstraintViolation(
                "MISSING_FIXED_LOCATION",
                f"Service {request.service_id} requires a {role} fixed location "
                f"({path}).",
                path, "E-2008",
            ))
        elif present and not required:
            errors.append(ConstraintViolation(
                "FIXED_LOCATION_NOT_ALLOWED",
                f"Service {request.service_id} does not use a {role} fixed "
                f"location; remove {path}.",
                path, "E-2008",
            ))
        elif present and address.fixed_location_id <= 0:
            errors.append(ConstraintViolation(
                "INVALID_FIXED_LOCATION",
                f"{path} must be greater than 0.",
                path, "E-2008",
            ))


def validate(
    request: ShipmentRequest,
    rules: OperationRules = PRICING_RULES,
) -> list[ConstraintViolation]:
    """Validate a normalized request against an operation's rules.

    Args:
        request: Output of normalize().
        rules: PRICING_RULES or ORDER_RULES.

    Returns:
        Every violated constraint, in rule order. Empty when valid.
    """
    errors: list[ConstraintViolation] = []
    _check_identification(request, rules, errors)
    _check_content(request.content, rules, errors)
    _check_parcels(request.content, rules, errors)
    _check_extra(request, rules, errors)
    _check_address(request.address_from, "address_from", errors)
    _check_address(request.address_to, "address_to", errors)
    _check_fixed_locations(request, errors)
    return errors


def prepare(
    raw: Mapping[str, Any] | ShipmentRequest,
    rules: OperationRules,
) -> tuple[ShipmentRequest, list[ConstraintViolation]]:
    """Normalize then validate. Raises StructuralError on malformed input."""
    request = normalize(raw)
    return request, validate(request, rules)
