"""Account tools: customer profile and wallet balance."""

import logging

from fastmcp import Context

from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import format_profile, format_wallet
from src.mcp.europarcel.utils import api_error, get_client, success

logger = logging.getLogger(__name__)


async def _fetch_profile(ctx: Context) -> dict:
    response = await get_client(ctx).get_profile()
    if isinstance(response, dict) and isinstance(response.get("data"), dict):
        return response["data"]
    return response


async def get_profile(ctx: Context) -> dict:
    """Get the customer profile: account details, wallet and preferences.

    Returns:
        Dictionary with success, summary and the raw ``profile``.
    """
    await ctx.info("Fetching account profile")
    try:
        profile = await _fetch_profile(ctx)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_profile(profile), profile=profile)


async def get_wallet_balance(ctx: Context) -> dict:
    """Get the current wallet balance and currency.

    The balance is read from the profile; the API has no separate wallet
    endpoint.
    """
    await ctx.info("Fetching wallet balance")
    try:
        profile = await _fetch_profile(ctx)
    except EuroparcelAPIError as e:
        return api_error(e)

    balance = {
        "wallet_balance": profile.get("wallet_balance"),
        "wallet_currency": profile.get("wallet_currency"),
    }
    logger.info("Wallet balance: %s %s", balance["wallet_balance"], balance["wallet_currency"])
    return success(format_wallet(balance), **balance)
