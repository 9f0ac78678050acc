"""Plain-text summaries of Europarcel responses for the agent.

Each formatter takes the parsed API payload and returns a short, stable
text block. Formatters never raise on missing keys; absent values render
as "-" so a partial response still produces a usable summary.
"""

from typing import Any

MAX_HISTORY_EVENTS = 5
_MISSING = "-"


def _val(value: Any) -> str:
    if value is None or value == "":
        return _MISSING
    return str(value)


def format_amount(amount: Any, currency: str | None) -> str:
    """Format a money amount with two decimals and its currency."""
    try:
        number = f"{float(amount):.2f}"
    except (TypeError, ValueError):
        number = _val(amount)
    return f"{number} {currency}" if currency else number


def _enabled(flag: Any) -> str:
    return "Enabled" if flag else "Disabled"


def _unwrap(payload: Any) -> Any:
    """Return ``payload["data"]`` when the API wraps its result."""
    if isinstance(payload, dict) and "data" in payload and len(payload) <= 2:
        return payload["data"]
    return payload


def items_of(payload: Any) -> list:
    """Extract the item list from list, {list: ...} or {data: ...} payloads."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("list", "data"):
            items = payload.get(key)
            if isinstance(items, list):
                return items
    return []


def _pagination(payload: Any) -> dict:
    if isinstance(payload, dict):
        for key in ("pagination", "meta"):
            value = payload.get(key)
            if isinstance(value, dict):
                return value
    return {}


def _page_footer(shown: int, pagination: dict, noun: str) -> list[str]:
    if not pagination:
        return []
    current = pagination.get("current_page")
    last = pagination.get("last_page")
    lines = [f"Showing {shown} of {_val(pagination.get('total'))} total {noun}."]
    if isinstance(current, int) and isinstance(last, int) and current < last:
        lines.append(f"Use page parameter to see more (next page: {current + 1}).")
    return lines


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


def format_profile(payload: dict) -> str:
    """Summarize the customer profile."""
    profile = _unwrap(payload) or {}
    email_state = "verified" if profile.get("email_verified") else "not verified"
    phone_state = "verified" if profile.get("phone_verified") else "not verified"
    lines = [
        "Account Information:",
        f"- Customer ID: {_val(profile.get('customer_id'))}",
        f"- Name: {_val(profile.get('name'))}",
        f"- Email: {_val(profile.get('email'))} ({email_state})",
        f"- Phone: {profile.get('phone') or 'Not provided'} ({phone_state})",
        f"- Country: {_val(profile.get('billing_country'))}",
        f"- Language: {_val(profile.get('preferred_language'))}",
        f"- Currency: {_val(profile.get('currency'))}",
        "",
        "Wallet:",
        f"- Balance: {format_amount(profile.get('wallet_balance'), profile.get('wallet_currency'))}",
        "",
        "Preferences:",
        f"- AWB Format: {_val(profile.get('awb_format'))}",
        f"- Bank IBAN: {'Configured' if profile.get('bank_iban') else 'Not configured'}",
        f"- Bank Holder: {profile.get('bank_holder') or 'Not configured'}",
    ]
    marketing = profile.get("marketing_settings")
    if isinstance(marketing, dict):
        lines += [
            "",
            "Marketing:",
            f"- Email Notifications: {_enabled(marketing.get('email_notifications'))}",
            f"- SMS Notifications: {_enabled(marketing.get('sms_notifications'))}",
        ]
    return "\n".join(lines)


def format_wallet(balance: dict) -> str:
    return f"Wallet balance: {format_amount(balance.get('wallet_balance'), balance.get('wallet_currency'))}"


# ---------------------------------------------------------------------------
# Addresses and locations
# ---------------------------------------------------------------------------


def format_address(address: dict, label: str) -> str:
    street = " ".join(
        part for part in (address.get("street_name"), address.get("street_no")) if part
    )
    lines = [f"{label} address #{_val(address.get('id'))}"
             + (" (default)" if address.get("is_default") else "")]
    if address.get("company"):
        lines.append(f"   Company: {address['company']}")
    lines += [
        f"   Contact: {_val(address.get('contact'))}, {_val(address.get('phone'))}, "
        f"{_val(address.get('email'))}",
        f"   Address: {street or _MISSING}"
        + (f", {address['street_details']}" if address.get("street_details") else ""),
        f"   Locality: {_val(address.get('locality_name'))} (ID: {_val(address.get('locality_id'))}), "
        f"{_val(address.get('county_name'))}, {_val(address.get('country_code'))}",
    ]
    if address.get("zipcode"):
        lines.append(f"   Postal code: {address['zipcode']}")
    return "\n".join(lines)


def format_addresses(payload: Any, label: str) -> str:
    addresses = items_of(payload)
    total = _pagination(payload).get("total", len(addresses))
    noun = "address" if total == 1 else "addresses"
    if not addresses:
        return f"No {label.lower()} addresses found."
    lines = [f"Found {total} {label.lower()} {noun}:", ""]
    lines += [format_address(a, label) for a in addresses]
    return "\n".join(lines)


def format_countries(countries: list[dict]) -> str:
    if not countries:
        return "No countries available."
    lines = [f"Available countries ({len(countries)}):"]
    lines += [
        f"- {_val(c.get('name'))} ({_val(c.get('country_code'))}), "
        f"currency {_val(c.get('currency'))}"
        for c in countries
    ]
    return "\n".join(lines)


def format_counties(counties: list[dict], country_code: str) -> str:
    if not counties:
        return f"No counties found for {country_code}."
    lines = [f"Counties in {country_code} ({len(counties)}):"]
    lines += [
        f"- {_val(c.get('county_name'))} (code: {_val(c.get('county_code'))}, ID: {_val(c.get('id'))})"
        for c in counties
    ]
    return "\n".join(lines)


def format_localities(localities: list[dict], where: str) -> str:
    if not localities:
        return f"No localities found for {where}."
    lines = [f"Localities in {where} ({len(localities)}):"]
    lines += [
        f"- {_val(loc.get('name'))} (ID: {_val(loc.get('id'))}), {_val(loc.get('county_name'))}"
        for loc in localities
    ]
    return "\n".join(lines)


def format_carriers(carriers: list[dict]) -> str:
    if not carriers:
        return "No carriers available."
    lines = [f"Carriers ({len(carriers)}):"]
    lines += [
        f"- {_val(c.get('name'))} (ID: {_val(c.get('id'))})"
        + ("" if c.get("is_active", True) else " [inactive]")
        for c in carriers
    ]
    return "\n".join(lines)


def format_services(services: list[dict]) -> str:
    if not services:
        return "No services found."
    lines = [f"Services ({len(services)}):"]
    lines += [
        f"- {_val(s.get('service_name'))} (Service #{_val(s.get('service_id'))}) via "
        f"{_val(s.get('carrier_name'))} (carrier {_val(s.get('carrier_id'))}), "
        f"{_val(s.get('country_code'))}"
        for s in services
    ]
    return "\n".join(lines)


def format_fixed_location(location: dict) -> str:
    lines = [
        f"{_val(location.get('name'))} (ID: {_val(location.get('id'))})",
        f"   Type: {_val(location.get('fixed_location_type'))}, carrier "
        f"{_val(location.get('carrier_name'))} (ID: {_val(location.get('carrier_id'))})",
        f"   Address: {_val(location.get('address'))}, {_val(location.get('locality_name'))}, "
        f"{_val(location.get('county_name'))}",
        f"   Drop-off: {'yes' if location.get('allows_drop_off') else 'no'}, "
        f"active: {'yes' if location.get('is_active', True) else 'no'}",
    ]
    coordinates = location.get("coordinates")
    if isinstance(coordinates, dict):
        lines.append(f"   Coordinates: {_val(coordinates.get('lat'))}, {_val(coordinates.get('long'))}")
    return "\n".join(lines)


def format_fixed_locations(locations: list[dict]) -> str:
    if not locations:
        return "No fixed locations found."
    lines = [f"Fixed locations ({len(locations)}):", ""]
    lines += [format_fixed_location(loc) for loc in locations]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def format_locality_search(payload: Any, search: str) -> str:
    results = items_of(payload)
    if not results:
        return f"No localities match '{search}'."
    lines = [f"Localities matching '{search}' ({len(results)}):"]
    lines += [
        f"- {_val(r.get('name_and_county') or r.get('name'))} (ID: {_val(r.get('id'))})"
        for r in results
    ]
    meta = _pagination(payload)
    count, per_page = meta.get("count"), meta.get("per_page")
    if isinstance(count, int) and isinstance(per_page, int) and count > per_page:
        lines.append(f"Showing first {per_page} results. Use per_page to see more.")
    return "\n".join(lines)


def format_streets(streets: list[dict], search: str) -> str:
    if not streets:
        return f"No streets match '{search}'."
    lines = [f"Streets matching '{search}' ({len(streets)}):"]
    lines += [
        f"- {_val(s.get('street_name'))}, postal code {_val(s.get('postal_code'))}"
        for s in streets
    ]
    return "\n".join(lines)


def format_postal_code_results(results: list[dict], postal_code: str) -> str:
    if not results:
        return f"No locations found for postal code {postal_code}."
    lines = [f"Postal code {postal_code} ({len(results)} match(es)):"]
    lines += [
        f"- {_val(r.get('street_name'))}, {_val(r.get('name_and_county') or r.get('locality_name'))} "
        f"(locality ID: {_val(r.get('locality_id'))})"
        for r in results
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Repayments
# ---------------------------------------------------------------------------


def format_repayments(payload: Any) -> str:
    items = items_of(payload)
    if not items:
        return "No repayments found."
    lines = ["Repayments:"]
    for r in items:
        lines.append(
            f"- AWB {_val(r.get('awb'))} (order #{_val(r.get('order_id'))}): "
            f"{format_amount(r.get('repayment_amount'), r.get('repayment_currency'))}, "
            f"{_val(r.get('status'))}"
            + (f", delivered {r['delivered_at']}" if r.get("delivered_at") else "")
        )
    lines += _page_footer(len(items), _pagination(payload), "repayments")
    return "\n".join(lines)


def format_payout_reports(payload: Any) -> str:
    items = items_of(payload)
    if not items:
        return "No payout reports found."
    lines = ["Payout reports:"]
    for p in items:
        lines.append(
            f"- Payout #{_val(p.get('payout_id'))}: "
            f"{format_amount(p.get('repayment_amount'), p.get('repayment_currency'))}, "
            f"{_val(p.get('status'))}"
            + (f", paid {p['paid_at']}" if p.get("paid_at") else "")
        )
    lines += _page_footer(len(items), _pagination(payload), "payouts")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


def format_order_line(order: dict) -> str:
    lines = [
        f"Order #{_val(order.get('id'))}",
        f"   Status: {_val(order.get('order_status'))}",
        f"   Carrier: {_val(order.get('carrier_name'))} (ID: {_val(order.get('carrier_id'))})",
        f"   Service: {_val(order.get('service_name'))} (ID: {_val(order.get('service_id'))})",
        f"   Total: {format_amount(order.get('total_amount'), order.get('currency'))}",
    ]
    if order.get("awb"):
        lines.append(f"   AWB: {order['awb']}")
        if order.get("current_status"):
            final = " (Final)" if order.get("is_current_status_final") else ""
            lines.append(f"   Tracking: {order['current_status']}{final}")
        if order.get("track_url"):
            lines.append(f"   Track URL: {order['track_url']}")
    if (order.get("repayment_amount") or 0) > 0:
        lines.append(
            f"   COD: {format_amount(order['repayment_amount'], order.get('repayment_currency'))}"
        )
    return "\n".join(lines)


def format_orders(payload: Any) -> str:
    orders = items_of(payload)
    pagination = _pagination(payload)
    header = "Orders"
    if pagination:
        header += (f" (Page {_val(pagination.get('current_page'))}/"
                   f"{_val(pagination.get('last_page'))})")
    if not orders:
        return f"{header}:\nNo orders found."
    lines = [f"{header}:", ""]
    lines += [format_order_line(order) for order in orders]
    lines += [""] + _page_footer(len(orders), pagination, "orders")
    return "\n".join(lines).rstrip()


def _format_history(history: list[dict]) -> list[str]:
    lines = [f"Tracking history ({len(history)} events):"]
    for event in history[:MAX_HISTORY_EVENTS]:
        lines.append(f"   - {_val(event.get('timestamp'))}: {_val(event.get('status'))}")
        if event.get("location"):
            lines.append(f"     Location: {event['location']}")
    if len(history) > MAX_HISTORY_EVENTS:
        lines.append(f"   ... and {len(history) - MAX_HISTORY_EVENTS} more events")
    return lines


def format_order_details(payload: Any) -> str:
    order = _unwrap(payload) or {}
    currency = order.get("currency")
    lines = [
        f"Order #{_val(order.get('id'))}",
        f"Status: {_val(order.get('order_status'))}",
        f"Created: {_val(order.get('created_at'))}",
        f"Updated: {_val(order.get('updated_at'))}",
        "",
        "Shipping:",
        f"   Carrier: {_val(order.get('carrier_name'))} (ID: {_val(order.get('carrier_id'))})",
        f"   Service: {_val(order.get('service_name'))} (ID: {_val(order.get('service_id'))})",
    ]
    if order.get("awb"):
        lines.append(f"   AWB: {order['awb']}")
        if order.get("current_status"):
            lines.append(f"   Current status: {order['current_status']}")
            lines.append(f"   Description: {_val(order.get('current_status_description'))}")
            lines.append(f"   Final: {'Yes' if order.get('is_current_status_final') else 'No'}")
        if order.get("track_url"):
            lines.append(f"   Track URL: {order['track_url']}")
    lines += [
        "",
        "Financial:",
        f"   Subtotal: {format_amount(order.get('subtotal'), currency)}",
        f"   Tax: {format_amount(order.get('tax_amount'), currency)}",
    ]
    if (order.get("discount_amount") or 0) > 0:
        lines.append(f"   Discount: {format_amount(order['discount_amount'], currency)}")
    lines.append(f"   Total: {format_amount(order.get('total_amount'), currency)}")
    if (order.get("repayment_amount") or 0) > 0:
        lines.append(
            f"   COD: {format_amount(order['repayment_amount'], order.get('repayment_currency'))}"
        )
    history = order.get("history")
    if isinstance(history, list) and history:
        lines += [""] + _format_history(history)
    return "\n".join(lines)


def format_cancellation(result: dict, refund_channel: str) -> str:
    ok = bool(result.get("success", True))
    lines = [f"{'Cancelled' if ok else 'Not cancelled'}: {_val(result.get('message'))}"]
    if ok:
        lines.append(f"Order #{_val(result.get('order_id'))} has been cancelled.")
        if result.get("status"):
            lines.append(f"Status: {result['status']}")
        lines.append(f"Refund will be processed to: {refund_channel}")
    details = result.get("details")
    if isinstance(details, dict) and details:
        lines.append("Details:")
        lines += [f"   {key}: {value}" for key, value in details.items()]
    return "\n".join(lines)


def format_label_link(result: dict) -> str:
    return "\n".join([
        "Label download link generated.",
        f"AWB: {_val(result.get('awb'))}",
        f"Format: {_val(result.get('format'))}",
        f"URL: {_val(result.get('download_url'))}",
    ])


def format_tracking(results: list[dict], title: str) -> str:
    if not results:
        return f"{title}: no tracking information found."
    lines = [f"{title} ({len(results)}):", ""]
    for info in results:
        lines.append(f"AWB: {_val(info.get('awb'))}")
        if info.get("order_id"):
            lines.append(f"   Order ID: {info['order_id']}")
        lines += [
            f"   Carrier: {_val(info.get('carrier'))}",
            f"   Status: {_val(info.get('current_status'))} (ID: {_val(info.get('current_status_id'))})",
            f"   Description: {_val(info.get('current_status_description'))}",
            f"   Final: {'Yes' if info.get('is_current_status_final') else 'No'}",
        ]
        if info.get("track_url"):
            lines.append(f"   Track URL: {info['track_url']}")
        if info.get("reference"):
            lines.append(f"   Reference: {info['reference']}")
        lines.append("")
    return "\n".join(lines).rstrip()


# ---------------------------------------------------------------------------
# Pricing and order creation
# ---------------------------------------------------------------------------


def _format_validated_address(label: str, address: Any) -> list[str]:
    if not isinstance(address, dict):
        return []
    line = (f"{label}: {_val(address.get('locality_name'))}, {_val(address.get('county_name'))} "
            f"({_val(address.get('country_code'))}), locality ID {_val(address.get('locality_id'))}")
    if address.get("postal_code"):
        line += f", postal {address['postal_code']}"
    return [line]


def _format_validation_block(response: dict) -> list[str]:
    validated = response.get("validation_address")
    if not isinstance(validated, dict):
        return []
    return (
        ["", "Validated addresses:"]
        + _format_validated_address("From", validated.get("address_from"))
        + _format_validated_address("To", validated.get("address_to"))
    )


def format_price_options(response: dict) -> str:
    """Group price quotes by carrier, then list validated addresses."""
    options = items_of(response)
    lines = [f"Pricing options ({len(options)} results):", ""]
    if not options:
        lines.append("No pricing options available for this shipment.")
    by_carrier: dict[str, list[dict]] = {}
    for option in options:
        by_carrier.setdefault(_val(option.get("carrier")), []).append(option)
    for carrier, carrier_options in by_carrier.items():
        lines.append(f"{carrier}:")
        for option in carrier_options:
            price = option.get("price") or {}
            currency = price.get("currency")
            lines += [
                f"   {_val(option.get('service_name'))} (Service #{_val(option.get('service_id'))})",
                f"      Price: {format_amount(price.get('amount'), None)} + "
                f"{format_amount(price.get('vat'), None)} VAT = "
                f"{format_amount(price.get('total'), currency)}",
                f"      Pickup: {_val(option.get('estimated_pickup_date'))}",
                f"      Delivery: {_val(option.get('estimated_delivery_date'))}",
            ]
        lines.append("")
    lines += _format_validation_block(response)
    return "\n".join(lines).rstrip()


def format_created_order(response: dict) -> str:
    order = response.get("data") if isinstance(response.get("data"), dict) else response
    price = order.get("price") or {}
    currency = price.get("currency")
    lines = [
        "Order created.",
        f"Order ID: {_val(order.get('order_id'))}",
        f"AWB: {_val(order.get('awb_number'))}",
        f"Carrier: {_val(order.get('carrier'))} (ID: {_val(order.get('carrier_id'))})",
        f"Service: {_val(order.get('service_name'))} (ID: {_val(order.get('service_id'))})",
        f"Price: {format_amount(price.get('amount'), currency)} + "
        f"{format_amount(price.get('vat'), currency)} VAT = "
        f"{format_amount(price.get('total'), currency)}",
        f"Pickup: {_val(order.get('estimated_pickup_date'))}",
        f"Delivery: {_val(order.get('estimated_delivery_date'))}",
        f"Tracking: {order.get('track_url') or 'available once pickup is scheduled'}",
    ]
    extra = order.get("extra")
    if isinstance(extra, dict) and extra:
        lines.append("Extra services:")
        lines += [f"   {key}: {value}" for key, value in extra.items()]
    if price.get("total") is not None:
        lines.append(f"Wallet charged: {format_amount(price.get('total'), currency)}")
    lines += _format_validation_block(response)
    return "\n".join(lines)
