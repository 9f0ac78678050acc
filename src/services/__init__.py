"""Service layer for the Europarcel MCP adapter.

Provides the shipment request models and the rules engine that normalizes
and validates pricing and order requests before they reach the API.
"""

from src.services.shipment_request import ShipmentRequest, TrackingRequest
from src.services.shipment_rules import (
    ORDER_RULES,
    PRICING_RULES,
    ConstraintViolation,
    StructuralError,
    normalize,
    prepare,
    validate,
)

__all__ = [
    "ShipmentRequest",
    "TrackingRequest",
    "ConstraintViolation",
    "StructuralError",
    "PRICING_RULES",
    "ORDER_RULES",
    "normalize",
    "validate",
    "prepare",
]
