"""Pricing and order creation tools.

Requests are normalized and checked against the operation's rules before
any network call. A request with violations is answered locally with the
full list so the agent can fix everything in one round.

Request shape (all three tools):
    carrier_id, service_id: ints. Service 1 home-to-home, 2 home-to-locker,
        3 locker-to-home, 4 locker-to-locker, 5 pallet (pricing only).
    billing_to: {"billing_address_id": int}
    address_from / address_to: {"address_from_id" | "address_to_id": int}
        or a full address (contact, phone, email, country_code,
        street_name, street_number and one of locality_id, postal_code or
        locality_name + county_name). ``fixed_location_id`` selects a locker.
    content: exactly one of envelopes_count (max 1), pallets_count,
        parcels_count > 0; total_weight; parcels [{size: {weight, width,
        height, length}, sequence_no}] numbered 1..n when parcels_count > 0.
    extra: parcel_content (required), insurance and COD fields.
"""

import logging
from typing import Any

from fastmcp import Context

from src.errors import EuroparcelError, format_violations
from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import format_created_order, format_price_options, items_of
from src.mcp.europarcel.utils import (
    ToolArgumentError,
    api_error,
    argument_error,
    get_client,
    structural_error,
    success,
    violations_error,
)
from src.services.shipment_rules import (
    OPERATION_RULES,
    ORDER_RULES,
    PRICING_RULES,
    OperationRules,
    StructuralError,
    prepare,
)

logger = logging.getLogger(__name__)


def _collect(**fields: Any) -> dict[str, Any]:
    return {name: value for name, value in fields.items() if value is not None}


def _describe_route(payload: dict) -> str:
    def _where(address: dict | None) -> str:
        if not address:
            return "?"
        return str(
            address.get("locality_name")
            or address.get("locality_id")
            or address.get("postal_code")
            or address.get("address_from_id")
            or address.get("address_to_id")
            or "?"
        )
    return f"{_where(payload.get('address_from'))} -> {_where(payload.get('address_to'))}"


def _prepare_payload(raw: dict[str, Any], rules: OperationRules) -> tuple[dict | None, dict | None]:
    """Return (payload, None) when valid, else (None, failure response)."""
    try:
        request, violations = prepare(raw, rules)
    except StructuralError as e:
        logger.info("Rejected malformed %s request: %s", rules.name, e)
        return None, structural_error(e)
    if violations:
        logger.info("Rejected %s request with %d violation(s)", rules.name, len(violations))
        return None, violations_error(violations)
    return request.to_payload(), None


async def calculate_prices(
    ctx: Context,
    carrier_id: int | None = None,
    service_id: int | None = None,
    billing_to: dict | None = None,
    address_from: dict | None = None,
    address_to: dict | None = None,
    content: dict | None = None,
    extra: dict | None = None,
) -> dict:
    """Quote shipping prices for a shipment.

    Envelopes, pallets and parcels are accepted, with services 1 to 5.
    See the module docstring for the request shape.

    Returns:
        Dictionary with success, summary, ``options`` (price quotes) and
        ``validated_addresses``; or the violations when the request is
        invalid.
    """
    raw = _collect(
        carrier_id=carrier_id, service_id=service_id, billing_to=billing_to,
        address_from=address_from, address_to=address_to, content=content, extra=extra,
    )
    payload, failure = _prepare_payload(raw, PRICING_RULES)
    if failure is not None:
        return failure

    await ctx.info(f"Calculating prices for {_describe_route(payload)}")
    try:
        response = await get_client(ctx).calculate_prices(payload)
    except EuroparcelAPIError as e:
        return api_error(e)

    options = items_of(response)
    logger.info("Retrieved %d pricing options", len(options))
    return success(
        format_price_options(response),
        options=options,
        validated_addresses=response.get("validation_address") if isinstance(response, dict) else None,
    )


async def create_order(
    ctx: Context,
    carrier_id: int | None = None,
    service_id: int | None = None,
    billing_to: dict | None = None,
    address_from: dict | None = None,
    address_to: dict | None = None,
    content: dict | None = None,
    extra: dict | None = None,
) -> dict:
    """Create a shipping order. The wallet is charged on success.

    Stricter than pricing: envelopes or parcels only, services 1 to 4,
    carriers 1, 2, 3, 4, 6 and 16, at most 10 parcels, insurance up to
    10000 and COD up to 7000. Quote first with calculate_prices.
    """
    raw = _collect(
        carrier_id=carrier_id, service_id=service_id, billing_to=billing_to,
        address_from=address_from, address_to=address_to, content=content, extra=extra,
    )
    payload, failure = _prepare_payload(raw, ORDER_RULES)
    if failure is not None:
        return failure

    await ctx.info(f"Creating order for {_describe_route(payload)}")
    try:
        response = await get_client(ctx).create_order(payload)
    except EuroparcelAPIError as e:
        return api_error(e)

    if not isinstance(response, dict) or not response:
        logger.error("Unexpected create order response type: %s", type(response).__name__)
        error = EuroparcelError.from_code(
            "E-3005", api_message="order response was empty or not an object",
        )
        return {"success": False, **error.to_dict()}

    order = response.get("data") if isinstance(response.get("data"), dict) else response
    logger.info(
        "Order created: order_id=%s awb=%s", order.get("order_id"), order.get("awb_number"),
    )
    return success(format_created_order(response), order=order,
                   validated_addresses=response.get("validation_address"))


async def validate_shipment(
    ctx: Context,
    operation: str = "pricing",
    carrier_id: int | None = None,
    service_id: int | None = None,
    billing_to: dict | None = None,
    address_from: dict | None = None,
    address_to: dict | None = None,
    content: dict | None = None,
    extra: dict | None = None,
) -> dict:
    """Check a pricing or order request without calling Europarcel.

    Args:
        operation: "pricing" or "order".

    Returns:
        Dictionary with success, ``valid``, summary, ``violations`` and the
        normalized ``request`` payload when it could be parsed.
    """
    rules = OPERATION_RULES.get((operation or "").strip().lower())
    if rules is None:
        return argument_error(ToolArgumentError(
            "operation must be one of: " + ", ".join(OPERATION_RULES), field="operation",
        ))

    raw = _collect(
        carrier_id=carrier_id, service_id=service_id, billing_to=billing_to,
        address_from=address_from, address_to=address_to, content=content, extra=extra,
    )
    await ctx.info(f"Validating {rules.name} request")
    try:
        request, violations = prepare(raw, rules)
    except StructuralError as e:
        return structural_error(e)

    if violations:
        summary = format_violations(violations)
    else:
        summary = f"Request is valid for {rules.name}."
    return success(
        summary,
        valid=not violations,
        operation=rules.name,
        violations=[v.to_dict() for v in violations],
        request=request.to_payload(),
    )
