"""Order tools: listing, details, cancellation, labels and tracking.

Pricing and order creation live in pricing.py since they go through the
request rules engine.
"""

import logging
from typing import Any

from fastmcp import Context

from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import (
    format_cancellation,
    format_label_link,
    format_order_details,
    format_orders,
    format_tracking,
    items_of,
)
from src.mcp.europarcel.utils import (
    ToolArgumentError,
    api_error,
    argument_error,
    coerce_id,
    get_client,
    success,
)
from src.services.shipment_rules import StructuralError, normalize_tracking

logger = logging.getLogger(__name__)

ORDERS_PAGE_SIZE_RANGE = (15, 200)
REFUND_CHANNELS = ("wallet", "card")
TRACKING_LANGUAGES = ("ro", "de", "en", "fr", "hu", "bg")
MAX_TRACKING_ITEMS = 200


async def get_orders(
    ctx: Context,
    page: int | str | None = None,
    per_page: int | str | None = None,
) -> dict:
    """List orders with status, price and tracking summary.

    Args:
        page: Page number (default 1).
        per_page: Orders per page, 15 to 200 (default 15).
    """
    try:
        page = coerce_id(page, "page", required=False) or 1
        per_page = coerce_id(per_page, "per_page", required=False) or ORDERS_PAGE_SIZE_RANGE[0]
        low, high = ORDERS_PAGE_SIZE_RANGE
        if not low <= per_page <= high:
            raise ToolArgumentError(f"per_page must be between {low} and {high}", field="per_page")
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Fetching orders page {page}")
    try:
        response = await get_client(ctx).get_orders(page=page, per_page=per_page)
    except EuroparcelAPIError as e:
        return api_error(e)

    orders = items_of(response)
    logger.info("Retrieved %d orders", len(orders))
    return success(
        format_orders(response),
        orders=orders,
        pagination=response.get("pagination") if isinstance(response, dict) else None,
    )


async def get_order_by_id(order_id: int | str, ctx: Context) -> dict:
    """Get full order details including pricing and tracking history."""
    try:
        order_id = coerce_id(order_id, "order_id")
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Fetching order {order_id}")
    try:
        order = await get_client(ctx).get_order_by_id(order_id)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_order_details(order), order=order)


async def cancel_order(order_id: int | str, refund_channel: str, ctx: Context) -> dict:
    """Cancel an order that has not been picked up yet.

    Args:
        order_id: Order to cancel.
        refund_channel: "wallet" or "card".
    """
    try:
        order_id = coerce_id(order_id, "order_id")
        channel = (refund_channel or "").strip().lower()
        if channel not in REFUND_CHANNELS:
            raise ToolArgumentError(
                "refund_channel must be 'wallet' or 'card'", field="refund_channel",
            )
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Cancelling order {order_id} (refund to {channel})")
    try:
        result = await get_client(ctx).cancel_order(order_id, channel)
    except EuroparcelAPIError as e:
        return api_error(e)

    logger.info("Cancel order %s: %s", order_id, result.get("message"))
    return {
        **success(format_cancellation(result, channel), result=result),
        "success": bool(result.get("success", True)),
    }


async def generate_label_link(awb: str | int, ctx: Context) -> dict:
    """Generate a permanent download link for a shipping label PDF."""
    awb_value = str(awb).strip() if awb is not None else ""
    if not awb_value:
        return argument_error(ToolArgumentError("awb is required", field="awb"))

    await ctx.info(f"Generating label link for AWB {awb_value}")
    try:
        result = await get_client(ctx).generate_label_link(awb_value)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_label_link(result), label=result)


def _tracking_request(raw: dict[str, Any]):
    """Normalize a tracking request and check the language and list size."""
    try:
        request = normalize_tracking(raw)
    except StructuralError as e:
        raise ToolArgumentError(str(e), field=e.field_path) from e
    if request.language not in TRACKING_LANGUAGES:
        raise ToolArgumentError(
            "language must be one of: " + ", ".join(TRACKING_LANGUAGES), field="language",
        )
    return request


async def track_awbs_by_carrier(
    carrier_id: int | str,
    awb_list: list[str],
    ctx: Context,
    language: str | None = None,
) -> dict:
    """Track up to 200 AWBs of one carrier.

    Args:
        carrier_id: Carrier that issued the AWBs.
        awb_list: AWB numbers, 1 to 200.
        language: ro (default), de, en, fr, hu or bg.
    """
    try:
        carrier_id = coerce_id(carrier_id, "carrier_id")
        awbs = [str(a).strip() for a in (awb_list or []) if str(a).strip()]
        if not 1 <= len(awbs) <= MAX_TRACKING_ITEMS:
            raise ToolArgumentError(
                f"awb_list must contain 1 to {MAX_TRACKING_ITEMS} AWB numbers", field="awb_list",
            )
        request = _tracking_request(
            {"carrier_id": carrier_id, "awb_list": awbs, "language": language}
        )
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Tracking {len(awbs)} AWBs for carrier {carrier_id}")
    try:
        results = items_of(await get_client(ctx).track_awbs_by_carrier(
            request.carrier_id, request.awb_list, request.language,
        ))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(
        format_tracking(results, f"Tracking results for carrier #{carrier_id}"),
        tracking=results,
    )


async def track_orders_by_ids(
    order_ids: list[int | str],
    ctx: Context,
    language: str | None = None,
) -> dict:
    """Track up to 200 orders by their Europarcel order ids."""
    try:
        ids = [coerce_id(order_id, "order_ids") for order_id in (order_ids or [])]
        if not 1 <= len(ids) <= MAX_TRACKING_ITEMS:
            raise ToolArgumentError(
                f"order_ids must contain 1 to {MAX_TRACKING_ITEMS} ids", field="order_ids",
            )
        request = _tracking_request({"order_ids": ids, "language": language})
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Tracking {len(ids)} orders")
    try:
        results = items_of(await get_client(ctx).track_orders_by_ids(
            request.order_ids, request.language,
        ))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_tracking(results, "Tracking results for orders"), tracking=results)
