"""Cash-on-delivery repayment tools."""

from fastmcp import Context

from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import format_payout_reports, format_repayments, items_of
from src.mcp.europarcel.utils import (
    ToolArgumentError,
    api_error,
    argument_error,
    coerce_id,
    get_client,
    success,
)


async def get_repayments(
    ctx: Context,
    page: int | str | None = None,
    order_id: int | str | None = None,
) -> dict:
    """List COD repayments, optionally for a single order."""
    try:
        page = coerce_id(page, "page", required=False)
        order_id = coerce_id(order_id, "order_id", required=False)
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info("Fetching repayments")
    try:
        response = await get_client(ctx).get_repayments(page=page, order_id=order_id)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(
        format_repayments(response),
        repayments=items_of(response),
        pagination=response.get("pagination") if isinstance(response, dict) else None,
    )


async def get_payout_reports(ctx: Context, page: int | str | None = None) -> dict:
    """List payout reports (bank transfers of collected COD amounts)."""
    try:
        page = coerce_id(page, "page", required=False)
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info("Fetching payout reports")
    try:
        response = await get_client(ctx).get_payout_reports(page=page)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(
        format_payout_reports(response),
        payouts=items_of(response),
        pagination=response.get("pagination") if isinstance(response, dict) else None,
    )
