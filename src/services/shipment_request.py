"""Request models for Europarcel pricing and order creation.

These models describe the *shape* of a shipment request. They enforce
primitive types only; every business rule (content exclusivity, parcel
sequencing, conditional currencies, fixed locations) lives in
src.services.shipment_rules so that violations can be collected and
reported together instead of failing on the first one.

Models are frozen. Normalization produces new instances via model_copy().
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ContentKind(str, Enum):
    """Mutually exclusive kinds of shipment content."""

    ENVELOPE = "envelope"
    PALLET = "pallet"
    PARCEL = "parcel"


class _RequestModel(BaseModel):
    """Base for request models: immutable, unknown keys rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)


class ParcelSize(_RequestModel):
    """Parcel weight (kg) and dimensions (cm)."""

    weight: float = Field(..., description="Parcel weight in kg")
    width: float = Field(..., description="Parcel width in cm")
    height: float = Field(..., description="Parcel height in cm")
    length: float = Field(..., description="Parcel length in cm")


class ParcelSpec(_RequestModel):
    """A single parcel in a multi-parcel shipment."""

    size: ParcelSize
    sequence_no: int = Field(..., description="1-based position of the parcel")


class ShipmentContent(_RequestModel):
    """What is being shipped. Exactly one of the three counts must be > 0."""

    envelopes_count: int = 0
    pallets_count: int = 0
    parcels_count: int = 0
    total_weight: float | None = Field(None, description="Total weight in kg")
    parcels: list[ParcelSpec] | None = None

    def count_for(self, kind: ContentKind) -> int:
        """Return the declared count for a content kind."""
        if kind is ContentKind.ENVELOPE:
            return self.envelopes_count
        if kind is ContentKind.PALLET:
            return self.pallets_count
        return self.parcels_count


class ExtraServices(_RequestModel):
    """Package description plus optional paid services."""

    parcel_content: str | None = Field(None, description="Content description")
    internal_identifier: str | None = None
    sms_sender: bool | None = None
    sms_recipient: bool | None = None
    open_package: bool | None = None
    return_package: bool | None = None
    return_of_documents: bool | None = None
    insurance_amount: float | None = None
    insurance_amount_currency: str | None = None
    bank_repayment_amount: float | None = None
    bank_repayment_currency: str | None = None
    bank_holder: str | None = None
    bank_iban: str | None = None


class AddressRef(_RequestModel):
    """Sender or recipient address.

    Either references an address already stored on the account, or carries
    the full contact and street details. The pricing endpoint spells the
    reference ``address_from_id``/``address_to_id``; order creation uses
    ``address_id``. Both spellings are kept so the payload is forwarded
    exactly as the caller wrote it.
    """

    address_id: int | None = None
    address_from_id: int | None = None
    address_to_id: int | None = None
    email: str | None = None
    phone: str | None = None
    contact: str | None = None
    company: str | None = None
    country_code: str | None = None
    county_name: str | None = None
    locality_name: str | None = None
    locality_id: int | None = None
    street_name: str | None = None
    street_number: str | None = None
    street_details: str | None = None
    postal_code: str | None = None
    fixed_location_id: int | None = None

    @property
    def reference_id(self) -> int | None:
        """Return whichever stored-address reference was supplied."""
        for value in (self.address_id, self.address_from_id, self.address_to_id):
            if value is not None:
                return value
        return None


class BillingTo(_RequestModel):
    """Billing address reference (must be a billing address on the account)."""

    billing_address_id: int | None = None


class ShipmentRequest(_RequestModel):
    """Aggregate request accepted by the pricing and order endpoints."""

    carrier_id: int | None = None
    service_id: int | None = None
    billing_to: BillingTo | None = None
    address_from: AddressRef | None = None
    address_to: AddressRef | None = None
    content: ShipmentContent | None = None
    extra: ExtraServices | None = None

    def to_payload(self) -> dict:
        """Serialize for the Europarcel API, omitting absent fields."""
        return self.model_dump(mode="json", exclude_none=True)


class TrackingRequest(_RequestModel):
    """Tracking lookup by AWB list (with carrier) or by order ids."""

    carrier_id: int | None = None
    awb_list: list[str] | None = None
    order_ids: list[int] | None = None
    language: str | None = None
