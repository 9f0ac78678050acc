"""Saved address tools.

Billing addresses are used for ``billing_to.billing_address_id``; shipping
and delivery addresses can be referenced as ``address_from_id`` and
``address_to_id`` in pricing and order requests. All pages are fetched.
"""

from fastmcp import Context

from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import format_addresses, items_of
from src.mcp.europarcel.utils import api_error, get_client, success


async def get_billing_addresses(ctx: Context) -> dict:
    """List all billing addresses of the account."""
    await ctx.info("Fetching billing addresses")
    try:
        response = await get_client(ctx).get_billing_addresses(all=True)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_addresses(response, "Billing"), addresses=items_of(response))


async def get_shipping_addresses(ctx: Context) -> dict:
    """List all shipping (pickup) addresses of the account."""
    await ctx.info("Fetching shipping addresses")
    try:
        response = await get_client(ctx).get_shipping_addresses(all=True)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_addresses(response, "Shipping"), addresses=items_of(response))


async def get_delivery_addresses(ctx: Context) -> dict:
    """List all delivery (recipient) addresses of the account."""
    await ctx.info("Fetching delivery addresses")
    try:
        response = await get_client(ctx).get_delivery_addresses(all=True)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_addresses(response, "Delivery"), addresses=items_of(response))
