"""Domain and request/response schemas."""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from litestar_dpdlocal.config import LabelFormat, ServiceCode


def _now() -> datetime:
    return datetime.now(tz=UTC)


class ShipmentStatus(StrEnum):
    CREATED = "created"
    LABEL_GENERATED = "label_generated"
    COLLECTED = "collected"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Address(BaseModel):
    """Delivery address with recipient contact."""

    organisation: str = ""
    property: str
    street: str
    locality: str = ""
    town: str
    county: str = ""
    postcode: str
    country_code: str = "GB"
    contact_name: str
    contact_phone: str


class SavedAddress(Address):
    id: str | None = None
    user_id: str
    is_default: bool = False
    label: str | None = None
    validated: bool = False
    validated_at: datetime | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class CreateShipmentParams(BaseModel):
    """Payload for shipment creation."""

    order_id: str
    order_ref: str
    service: ServiceCode = "12"
    delivery_address: Address
    total_weight: float = Field(gt=0)
    number_of_parcels: int = Field(default=1, ge=1)
    customer_email: str
    customer_phone: str | None = None
    delivery_instructions: str | None = None
    collection_date: date | None = None


class ShipmentResult(BaseModel):
    shipment_id: str
    consignment_number: str
    parcel_number: str
    tracking_url: str


class StatusUpdate(BaseModel):
    status: ShipmentStatus
    timestamp: datetime
    message: str | None = None
    location: str | None = None


class TrackingResult(BaseModel):
    status: ShipmentStatus
    status_history: list[StatusUpdate] = Field(default_factory=list)
    estimated_delivery: str | None = None
    actual_delivery: str | None = None


class AddressValidationResult(BaseModel):
    valid: bool
    serviceable: bool
    message: str


class LabelResult(BaseModel):
    label_data: str
    label_url: str | None = None


class CostBreakdown(BaseModel):
    base_price: float
    weight_charge: float
    total_cost: float
    customer_charge: float


class ShippingData(BaseModel):
    """Shipping record written onto the host application's order."""

    provider: str = "dpd"
    service: ServiceCode
    shipment_id: str
    consignment_number: str
    parcel_number: str
    tracking_url: str
    label_url: str
    status: ShipmentStatus
    status_history: list[StatusUpdate]
    cost: CostBreakdown
    total_weight: float
    weight_unit: str = "kg"
    parcels: int
    collection_date: date
    estimated_delivery: date
    created_at: datetime
    updated_at: datetime


class CompleteShipmentResult(BaseModel):
    """Shipment plus label outcome; ``error`` set when the label failed."""

    shipment: ShipmentResult
    label_url: str | None = None
    error: str | None = None


class ConnectionTestResult(BaseModel):
    success: bool
    message: str


class AuthStatus(BaseModel):
    authenticated: bool
    expires_at: datetime | None = None


class ValidateAddressRequest(BaseModel):
    postcode: str
    town: str = ""


class SaveAddressRequest(Address):
    user_id: str
    label: str | None = None
    is_default: bool = False


class GenerateLabelRequest(BaseModel):
    format: LabelFormat | None = None
