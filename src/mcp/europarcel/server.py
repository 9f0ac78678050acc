"""FastMCP server for the Europarcel shipping API.

Exposes account, address, location, search, repayment, order and pricing
tools. The lifespan opens one EuroparcelClient shared by all tools.

Configuration comes from src.cli.config (YAML plus environment). In stdio
mode stdout carries the MCP stream, so logging goes to stderr only and
tools report progress through ctx.info().
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from src.cli.config import EuroparcelConfig, load_config
from src.mcp.europarcel.client import EuroparcelClient
from src.mcp.europarcel.tools.accounts import get_profile, get_wallet_balance
from src.mcp.europarcel.tools.addresses import (
    get_billing_addresses,
    get_delivery_addresses,
    get_shipping_addresses,
)
from src.mcp.europarcel.tools.helpers import get_tools
from src.mcp.europarcel.tools.locations import (
    get_carriers,
    get_counties,
    get_countries,
    get_fixed_location_by_id,
    get_fixed_locations,
    get_localities,
    get_services,
)
from src.mcp.europarcel.tools.orders import (
    cancel_order,
    generate_label_link,
    get_order_by_id,
    get_orders,
    track_awbs_by_carrier,
    track_orders_by_ids,
)
from src.mcp.europarcel.tools.pricing import calculate_prices, create_order, validate_shipment
from src.mcp.europarcel.tools.repayments import get_payout_reports, get_repayments
from src.mcp.europarcel.tools.search import (
    postal_code_reverse,
    search_localities,
    search_streets,
)
from src.utils.log_setup import configure_logging

logger = logging.getLogger(__name__)

TOOLS = (
    # Account
    get_profile,
    get_wallet_balance,
    # Addresses
    get_billing_addresses,
    get_shipping_addresses,
    get_delivery_addresses,
    # Locations
    get_countries,
    get_counties,
    get_localities,
    get_carriers,
    get_services,
    get_fixed_locations,
    get_fixed_location_by_id,
    # Search
    search_localities,
    search_streets,
    postal_code_reverse,
    # Repayments
    get_repayments,
    get_payout_reports,
    # Orders
    get_orders,
    get_order_by_id,
    cancel_order,
    generate_label_link,
    track_awbs_by_carrier,
    track_orders_by_ids,
    # Pricing
    calculate_prices,
    create_order,
    validate_shipment,
    # Helpers
    get_tools,
)


class MissingApiKeyError(RuntimeError):
    """Raised at startup when no Europarcel API key is configured."""


def _resolve_config(config: EuroparcelConfig | None = None) -> EuroparcelConfig:
    config = config or load_config()
    if not config.api.api_key:
        raise MissingApiKeyError(
            "EUROPARCEL_API_KEY is not set. Export it or set api.api_key in europarcel.yaml."
        )
    return config


def make_lifespan(config: EuroparcelConfig | None = None):
    """Build the server lifespan for a given config.

    Args:
        config: Config to serve with. None loads it (YAML plus environment)
            when the server starts.
    """

    @asynccontextmanager
    async def lifespan(app: Any):
        """Open the Europarcel client for the lifetime of the server.

        Resources yielded are available to all tools via ctx.lifespan_context:
        - client: EuroparcelClient (API key is never logged)
        - config: EuroparcelConfig in effect
        """
        resolved = _resolve_config(config)
        client = EuroparcelClient(
            api_key=resolved.api.api_key,
            base_url=resolved.api.base_url,
            timeout=resolved.api.timeout,
        )
        logger.info("Europarcel client ready (%s)", resolved.api.base_url)
        async with client:
            yield {"client": client, "config": resolved}
        logger.info("Europarcel client closed")

    return lifespan


def create_server(config: EuroparcelConfig | None = None) -> FastMCP:
    """Create the FastMCP server with every Europarcel tool registered."""
    server = FastMCP("europarcel", lifespan=make_lifespan(config))
    for tool in TOOLS:
        server.tool()(tool)
    return server


# Entry point for `fastmcp run`; configuration is loaded at startup.
mcp = create_server()


def run(config: EuroparcelConfig) -> None:
    """Validate the config and serve over the configured transport.

    Raises:
        MissingApiKeyError: If no API key is configured.
    """
    _resolve_config(config)
    server = create_server(config)

    if config.server.transport == "http":
        logger.info(
            "Starting Europarcel MCP server on http://%s:%d",
            config.server.host, config.server.port,
        )
        server.run(transport="http", host=config.server.host, port=config.server.port)
    else:
        logger.info("Starting Europarcel MCP server on stdio")
        server.run(transport="stdio")


if __name__ == "__main__":
    _config = load_config()
    configure_logging(_config.server.log_level, _config.server.log_format)
    run(_config)
