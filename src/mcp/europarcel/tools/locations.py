"""Location tools: countries, counties, localities, carriers, services and
fixed locations (lockers and pickup points).
"""

from fastmcp import Context

from src.mcp.europarcel.client import EuroparcelAPIError
from src.mcp.europarcel.formatting import (
    format_carriers,
    format_counties,
    format_countries,
    format_fixed_location,
    format_fixed_locations,
    format_localities,
    format_services,
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


async def get_countries(ctx: Context) -> dict:
    """List countries served by Europarcel with currency and language."""
    await ctx.info("Fetching countries")
    try:
        countries = items_of(await get_client(ctx).get_countries())
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_countries(countries), countries=countries)


async def get_counties(country_code: str, ctx: Context) -> dict:
    """List counties of a country.

    Args:
        country_code: Two-letter country code, e.g. "RO".
    """
    try:
        country_code = coerce_country_code(country_code)
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Fetching counties for {country_code}")
    try:
        counties = items_of(await get_client(ctx).get_counties(country_code))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_counties(counties, country_code), counties=counties)


async def get_localities(country_code: str, county_code: str, ctx: Context) -> dict:
    """List localities of a county.

    Args:
        country_code: Two-letter country code.
        county_code: County code as returned by get_counties (e.g. "B", "CJ").
    """
    try:
        country_code = coerce_country_code(country_code)
        if not county_code or not county_code.strip():
            raise ToolArgumentError("county_code is required", field="county_code")
    except ToolArgumentError as e:
        return argument_error(e)

    county_code = county_code.strip().upper()
    await ctx.info(f"Fetching localities for {country_code}/{county_code}")
    try:
        localities = items_of(await get_client(ctx).get_localities(country_code, county_code))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(
        format_localities(localities, f"{county_code}, {country_code}"),
        localities=localities,
    )


async def get_carriers(ctx: Context) -> dict:
    """List carriers with their ids and active state."""
    await ctx.info("Fetching carriers")
    try:
        carriers = items_of(await get_client(ctx).get_carriers())
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_carriers(carriers), carriers=carriers)


async def get_services(
    ctx: Context,
    service_id: int | str | None = None,
    carrier_id: int | str | None = None,
    country_code: str | None = None,
) -> dict:
    """List carrier services, optionally filtered.

    Service ids: 1 home-to-home, 2 home-to-locker, 3 locker-to-home,
    4 locker-to-locker, 5 pallet/other.
    """
    try:
        service_id = coerce_id(service_id, "service_id", required=False)
        carrier_id = coerce_id(carrier_id, "carrier_id", required=False)
        if country_code is not None:
            country_code = coerce_country_code(country_code)
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info("Fetching services")
    try:
        services = items_of(await get_client(ctx).get_services(
            service_id=service_id, carrier_id=carrier_id, country_code=country_code,
        ))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_services(services), services=services)


def _carrier_filter(carrier_id: int | str | None) -> str | int | None:
    """Accept a single carrier id or a comma-separated list of ids."""
    if carrier_id is None or isinstance(carrier_id, int):
        return coerce_id(carrier_id, "carrier_id", required=False)
    parts = [part.strip() for part in str(carrier_id).split(",") if part.strip()]
    if not parts:
        return None
    ids = [coerce_id(part, "carrier_id") for part in parts]
    return ",".join(str(i) for i in ids)


async def get_fixed_locations(
    country_code: str,
    ctx: Context,
    locality_id: int | str | None = None,
    carrier_id: int | str | None = None,
    locality_name: str | None = None,
    county_name: str | None = None,
) -> dict:
    """List fixed locations (lockers, pickup points) in a country.

    Args:
        country_code: Two-letter country code (required).
        locality_id: Filter by locality.
        carrier_id: Single carrier id or comma-separated list.
        locality_name: Filter by locality name; requires county_name.
        county_name: Filter by county name; requires locality_name.
    """
    try:
        country_code = coerce_country_code(country_code)
        locality_id = coerce_id(locality_id, "locality_id", required=False)
        carrier_filter = _carrier_filter(carrier_id)
        if bool(locality_name) != bool(county_name):
            raise ToolArgumentError(
                "locality_name and county_name must be provided together",
                field="locality_name" if county_name else "county_name",
            )
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Fetching fixed locations in {country_code}")
    try:
        locations = items_of(await get_client(ctx).get_fixed_locations(
            country_code,
            locality_id=locality_id,
            carrier_id=carrier_filter,
            locality_name=locality_name,
            county_name=county_name,
        ))
    except EuroparcelAPIError as e:
        return api_error(e)
    return success(format_fixed_locations(locations), fixed_locations=locations)


async def get_fixed_location_by_id(location_id: int | str, ctx: Context) -> dict:
    """Get one fixed location with address, schedule and coordinates."""
    try:
        location_id = coerce_id(location_id, "location_id")
    except ToolArgumentError as e:
        return argument_error(e)

    await ctx.info(f"Fetching fixed location {location_id}")
    try:
        location = await get_client(ctx).get_fixed_location_by_id(location_id)
    except EuroparcelAPIError as e:
        return api_error(e)
    if isinstance(location, dict) and isinstance(location.get("data"), dict):
        location = location["data"]
    return success(format_fixed_location(location), fixed_location=location)
