"""Search tools: locality and street lookup, reverse postal code lookup.

Use these to resolve the ``locality_id`` or ``postal_code`` an ad-hoc
address needs before pricing or ordering.
"""

from fastmcp import Context

from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import (
    format_locality_search,
    format_postal_code_results,
    format_streets,
    items_of,
)
from src.mcp.europarcel.utils import (
    ToolArgumentError,
    api_error,
    argument_error,
    coerce_country_code,
    coerce_id,
    get_client,
    success,
)

LOCALITY_PAGE_SIZES = (15, 50, 100, 200)
MIN_LOCALITY_SEARCH_LENGTH = 2
POSTAL_CODE_LENGTH_RANGE = (4, 50)


def _search_term(search: str | None, min_length: int) -> str:
    term = (search or "").strip()
    if len(term) < min_length:
        raise ToolArgumentError(
            f"search must be at least {min_length} character(s)", field="search",
        )
    return term


async def search_localities(
    country_code: str,
    search: str,
    ctx: Context,
    per_page: int | str | None = None,
) -> dict:
    """Search localities by name. Tolerates diacritics and "county city" order.

    Args:
        country_code: Two-letter country code.
        search: At least 2 characters.
        per_page: One of 15, 50, 100, 200 (default 15).
    """
    try:
        country_code = coerce_country_code(country_code)
        term = _search_term(search, MIN_LOCALITY_SEARCH_LENGTH)
        page_size = coerce_id(per_page, "per_page", required=False) or LOCALITY_PAGE_SIZES[0]
        if page_size not in LOCALITY_PAGE_SIZES:
            raise ToolArgumentError(
                "per_page must be one of: " + ", ".join(str(s) for s in LOCALITY_PAGE_SIZES),
                field="per_page",
            )
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Searching localities in {country_code} for '{term}'")
    try:
        response = await get_client(ctx).search_localities(country_code, term, page_size)
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_locality_search(response, term), localities=items_of(response))


async def search_streets(
    country_code: str,
    locality_id: int | str,
    search: str,
    ctx: Context,
) -> dict:
    """Search streets of a locality; each result carries its postal code."""
    try:
        country_code = coerce_country_code(country_code)
        locality_id = coerce_id(locality_id, "locality_id")
        term = _search_term(search, 1)
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Searching streets in locality {locality_id} for '{term}'")
    try:
        streets = items_of(await get_client(ctx).search_streets(country_code, locality_id, term))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_streets(streets, term), streets=streets)


async def postal_code_reverse(country_code: str, postal_code: str, ctx: Context) -> dict:
    """Find the localities and streets that a postal code belongs to."""
    try:
        country_code = coerce_country_code(country_code)
        code = (postal_code or "").strip()
        low, high = POSTAL_CODE_LENGTH_RANGE
        if not low <= len(code) <= high:
            raise ToolArgumentError(
                f"postal_code must be between {low} and {high} characters",
                field="postal_code",
            )
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Reverse lookup of postal code {code}")
    try:
        results = items_of(await get_client(ctx).postal_code_reverse(country_code, code))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_postal_code_results(results, code), results=results)
