"""Europarcel REST API client.

Thin async wrapper around httpx. Every endpoint the MCP tools need is a
method here; responses are returned as parsed JSON without reshaping.

Authentication is a static API key sent in the ``X-API-Key`` header.

Example usage:
    async with EuroparcelClient(api_key="...") as client:
        profile = await client.get_profile()
        quotes = await client.calculate_prices(request.to_payload())
"""

import logging
from typing import Any

import httpx

from src.utils.redaction import redact_for_logging

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.europarcel.com/api/public"
DEFAULT_TIMEOUT = 30.0


class EuroparcelAPIError(Exception):
    """Raised when the Europarcel API call fails.

    Attributes:
        error: Error kind reported by the API (e.g. "VALIDATION_ERROR"),
            "API_ERROR" when the body carries none, or "NETWORK_ERROR"
            when no response was received.
        message: Human-readable message.
        status: HTTP status, 0 when no response was received.
        details: Raw error body (minus error/message) for field errors.
    """

    def __init__(
        self,
        error: str,
        message: str,
        status: int = 0,
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status = status
        self.details = details or {}

    def __str__(self) -> str:
        if self.status:
            return f"[{self.status} {self.error}] {self.message}"
        return f"[{self.error}] {self.message}"


class EuroparcelClient:
    """Async client for the Europarcel public API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client settings. The HTTP session opens lazily.

        Args:
            api_key: Europarcel API key.
            base_url: API root, without trailing slash.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a fake).
        """
        if not api_key:
            raise ValueError("Europarcel API key is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "EuroparcelClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={
                    "X-API-Key": self._api_key,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP session."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Call primitives
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Make an authenticated request and return the parsed JSON body.

        Args:
            method: HTTP method.
            path: Endpoint path relative to the API root (e.g. "/orders").
            params: Query parameters; None values are dropped.
            json: JSON body.

        Returns:
            Parsed JSON response.

        Raises:
            EuroparcelAPIError: On non-2xx status or transport failure.
        """
        client = self._ensure_client()
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug("API Request: %s %s", method, path)
        if json is not None and isinstance(json, dict):
            logger.debug("API Request body: %s", redact_for_logging(json))

        try:
            response = await client.request(method, path, params=params or None, json=json)
        except httpx.RequestError as e:
            logger.error("API Error: %s %s: network failure: %s", method, path, e)
            raise EuroparcelAPIError(
                error="NETWORK_ERROR",
                message=f"Network request failed: {e}",
                status=0,
            ) from e

        logger.debug("API Response: %s %s", response.status_code, path)

        if response.is_error:
            raise self._to_api_error(method, path, response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise EuroparcelAPIError(
                error="API_ERROR",
                message="Europarcel returned a non-JSON response",
                status=response.status_code,
            ) from e

    def _to_api_error(
        self, method: str, path: str, response: httpx.Response,
    ) -> EuroparcelAPIError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        error_kind = body.get("error") or "API_ERROR"
        message = body.get("message") or response.reason_phrase or "Request failed"
        details = {k: v for k, v in body.items() if k not in ("error", "message")}

        logger.error(
            "API Error: %s %s %s: %s %s",
            response.status_code, method, path, error_kind, message,
        )
        return EuroparcelAPIError(
            error=str(error_kind),
            message=str(message),
            status=response.status_code,
            details=redact_for_logging(details),
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Any) -> Any:
        return await self._request("POST", path, json=body)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("DELETE", path, params=params)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def get_profile(self) -> dict:
        return await self.get("/account/profile")

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    async def get_billing_addresses(self, page: int | None = None,
                                    per_page: int | None = None,
                                    all: bool | None = True) -> dict:
        return await self.get("/addresses/billing", _page_params(page, per_page, all))

    async def get_shipping_addresses(self, page: int | None = None,
                                     per_page: int | None = None,
                                     all: bool | None = True) -> dict:
        return await self.get("/addresses/shipping", _page_params(page, per_page, all))

    async def get_delivery_addresses(self, page: int | None = None,
                                     per_page: int | None = None,
                                     all: bool | None = True) -> dict:
        return await self.get("/addresses/delivery", _page_params(page, per_page, all))

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    async def get_countries(self) -> list[dict]:
        return await self.get("/locations/countries")

    async def get_counties(self, country_code: str) -> list[dict]:
        return await self.get("/locations/counties", {"country_code": country_code})

    async def get_localities(self, country_code: str, county_code: str) -> list[dict]:
        return await self.get(
            "/locations/localities",
            {"country_code": country_code, "county_code": county_code},
        )

    async def get_carriers(self) -> list[dict]:
        return await self.get("/locations/carriers")

    async def get_services(
        self,
        service_id: int | None = None,
        carrier_id: int | None = None,
        country_code: str | None = None,
    ) -> list[dict]:
        return await self.get(
            "/locations/services",
            {"service_id": service_id, "carrier_id": carrier_id, "country_code": country_code},
        )

    async def get_fixed_locations(
        self,
        country_code: str,
        locality_id: int | None = None,
        carrier_id: int | str | None = None,
        locality_name: str | None = None,
        county_name: str | None = None,
    ) -> list[dict]:
        return await self.get(
            "/locations/fixedlocations",
            {
                "country_code": country_code,
                "locality_id": locality_id,
                "carrier_id": carrier_id,
                "locality_name": locality_name,
                "county_name": county_name,
            },
        )

    async def get_fixed_location_by_id(self, location_id: int) -> dict:
        return await self.get(f"/locations/fixedlocations/{location_id}")

    # ------------------------------------------------------------------
    # Repayments
    # ------------------------------------------------------------------

    async def get_repayments(self, page: int | None = None,
                             order_id: int | None = None) -> dict:
        return await self.get("/repayments", {"page": page, "order_id": order_id})

    async def get_payout_reports(self, page: int | None = None) -> dict:
        return await self.get("/repayments/reports", {"page": page})

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_localities(self, country_code: str, search: str,
                                per_page: int | None = None) -> dict:
        return await self.get(
            "/search/localities",
            {"country_code": country_code, "search": search, "per_page": per_page},
        )

    async def search_streets(self, country_code: str, locality_id: int,
                             search: str) -> list[dict]:
        return await self.get(
            "/search/streets",
            {"country_code": country_code, "locality_id": locality_id, "search": search},
        )

    async def postal_code_reverse(self, country_code: str, postal_code: str) -> list[dict]:
        """Reverse postal code lookup. Unwraps the ``data`` envelope."""
        response = await self.get(
            "/search/postal-code-reverse",
            {"country_code": country_code, "postal_code": postal_code},
        )
        if isinstance(response, dict):
            return response.get("data", [])
        return response

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def get_orders(self, page: int | None = None,
                         per_page: int | None = None) -> dict:
        return await self.get("/orders", {"page": page, "per_page": per_page})

    async def get_order_by_id(self, order_id: int) -> dict:
        return await self.get(f"/orders/{order_id}")

    async def cancel_order(self, order_id: int, refund_channel: str) -> dict:
        return await self.delete(f"/orders/{order_id}", {"refund_channel": refund_channel})

    async def track_awbs_by_carrier(self, carrier_id: int, awb_list: list[str],
                                    language: str) -> list[dict]:
        return await self.post(
            "/orders/track-by-awb",
            {"carrier_id": carrier_id, "awb_list": awb_list, "language": language},
        )

    async def track_orders_by_ids(self, order_ids: list[int], language: str) -> list[dict]:
        return await self.post(
            "/orders/track-by-order",
            {"order_ids": order_ids, "language": language},
        )

    async def generate_label_link(self, awb: str) -> dict:
        return await self.get(f"/orders/label-link/{awb}")

    async def calculate_prices(self, payload: dict) -> dict:
        return await self.post("/orders/prices", payload)

    async def create_order(self, payload: dict) -> dict:
        return await self.post("/orders", payload)


def _page_params(page: int | None, per_page: int | None, all: bool | None) -> dict:
    params: dict[str, Any] = {"page": page, "per_page": per_page}
    if all is not None:
        params["all"] = "true" if all else "false"
    return params
