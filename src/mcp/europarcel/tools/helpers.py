"""Helper tools: the tool catalog."""

import inspect
from typing import Callable

from fastmcp import Context

from src.mcp.europarcel.tools import (
    accounts,
    addresses,
    locations,
    orders,
    pricing,
    repayments,
    search,
)
from src.mcp.europarcel.utils import success

TOOL_CATEGORIES: dict[str, list[Callable]] = {
    "accounts": [accounts.get_profile, accounts.get_wallet_balance],
    "addresses": [
        addresses.get_billing_addresses,
        addresses.get_shipping_addresses,
        addresses.get_delivery_addresses,
    ],
    "locations": [
        locations.get_countries,
        locations.get_counties,
        locations.get_localities,
        locations.get_carriers,
        locations.get_services,
        locations.get_fixed_locations,
        locations.get_fixed_location_by_id,
    ],
    "search": [search.search_localities, search.search_streets, search.postal_code_reverse],
    "repayments": [repayments.get_repayments, repayments.get_payout_reports],
    "orders": [
        orders.get_orders,
        orders.get_order_by_id,
        orders.cancel_order,
        orders.generate_label_link,
        orders.track_awbs_by_carrier,
        orders.track_orders_by_ids,
    ],
    "pricing": [pricing.calculate_prices, pricing.create_order, pricing.validate_shipment],
}


def _describe(fn: Callable) -> dict:
    params = [
        name for name, param in inspect.signature(fn).parameters.items()
        if param.annotation is not Context and name != "ctx"
    ]
    doc = inspect.getdoc(fn) or ""
    return {
        "name": fn.__name__,
        "description": doc.split("\n\n")[0].replace("\n", " "),
        "parameters": params,
    }


def build_catalog() -> dict[str, list[dict]]:
    """Describe every tool by category, including get_tools itself."""
    catalog = {
        category: [_describe(fn) for fn in tools]
        for category, tools in TOOL_CATEGORIES.items()
    }
    catalog["helpers"] = [_describe(get_tools)]
    return catalog


async def get_tools(ctx: Context) -> dict:
    """List all Europarcel tools by category with their parameters."""
    await ctx.info("Listing tools")
    catalog = build_catalog()
    lines = []
    for category, tools in catalog.items():
        lines.append(f"{category.upper()}")
        for tool in tools:
            params = ", ".join(tool["parameters"]) or "none"
            lines.append(f"- {tool['name']}({params}): {tool['description']}")
        lines.append("")
    lines.append(
        "Workflow: get addresses or search localities, quote with calculate_prices, "
        "then create_order and track with track_awbs_by_carrier."
    )
    return success("\n".join(lines), tools=catalog)
