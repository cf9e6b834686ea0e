"""DPD shipment, label, tracking and postcode operations."""

from __future__ import annotations

import logging
import math
import re
import secrets
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.config import BusinessConfig
from litestar_dpdlocal.exceptions import (
    AddressLookupError,
    IncompleteResponseError,
    LabelGenerationError,
    UpstreamTerminalError,
)
from litestar_dpdlocal.labels import get_accept_header
from litestar_dpdlocal.pricing import (
    get_next_collection_date,
    get_tracking_url,
)
from litestar_dpdlocal.schemas import (
    AddressValidationResult,
    CreateShipmentParams,
    ShipmentResult,
    ShipmentStatus,
    StatusUpdate,
    TrackingResult,
)

logger = logging.getLogger(__name__)

MAX_PARCEL_WEIGHT_KG = 30
SERVICEABLE_COUNTRIES = ("England", "Wales", "Scotland")
UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}\d{1,2}[A-Z]?\d[A-Z]{2}$")

_STATUS_MAP: dict[str, ShipmentStatus] = {
    "CREATED": ShipmentStatus.CREATED,
    "LABEL GENERATED": ShipmentStatus.LABEL_GENERATED,
    "COLLECTED": ShipmentStatus.COLLECTED,
    "IN TRANSIT": ShipmentStatus.IN_TRANSIT,
    "OUT FOR DELIVERY": ShipmentStatus.OUT_FOR_DELIVERY,
    "DELIVERED": ShipmentStatus.DELIVERED,
    "FAILED": ShipmentStatus.FAILED,
    "CANCELLED": ShipmentStatus.CANCELLED,
}


def map_dpd_status(dpd_status: str) -> ShipmentStatus:
    return _STATUS_MAP.get(dpd_status.upper(), ShipmentStatus.CREATED)


def calculate_parcels(total_weight: float) -> int:
    """Number of parcels needed to stay under the per-parcel limit."""
    if total_weight <= MAX_PARCEL_WEIGHT_KG:
        return 1
    return math.ceil(total_weight / MAX_PARCEL_WEIGHT_KG)


def validate_service_code(code: str) -> bool:
    return code in ("12", "07")


def generate_consignment_ref(order_id: str) -> str:
    timestamp = _base36(int(time.time() * 1000))
    suffix = secrets.token_hex(2).upper()
    return f"FJ-{order_id}-{timestamp}{suffix}"


def _base36(number: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    result = ""
    while number:
        number, remainder = divmod(number, 36)
        result = digits[remainder] + result
    return result or "0"


def build_shipment_request(
    params: CreateShipmentParams, business: BusinessConfig
) -> dict[str, Any]:
    """DPD wire payload for a single-consignment shipment."""
    weight_per_parcel = round(
        params.total_weight / params.number_of_parcels, 2
    )
    collection = business.collection_address
    delivery = params.delivery_address
    collection_date = params.collection_date or get_next_collection_date()

    consignment = {
        "consignmentNumber": None,
        "consignmentRef": params.order_ref,
        "parcel": [
            {"weight": weight_per_parcel}
            for _ in range(params.number_of_parcels)
        ],
        "collectionDetails": {
            "address": {
                "organisation": collection.organisation,
                "property": collection.property,
                "street": collection.street,
                "locality": collection.locality,
                "town": collection.town,
                "county": collection.county,
                "postcode": collection.postcode,
                "countryCode": collection.country_code,
            },
            "contactDetails": {
                "name": business.contact_name,
                "telephone": business.contact_phone,
                "email": business.contact_email,
            },
        },
        "deliveryDetails": {
            "address": {
                "organisation": delivery.organisation,
                "property": delivery.property,
                "street": delivery.street,
                "locality": delivery.locality,
                "town": delivery.town,
                "county": delivery.county,
                "postcode": delivery.postcode,
                "countryCode": delivery.country_code,
            },
            "contactDetails": {
                "name": delivery.contact_name,
                "telephone": delivery.contact_phone,
                "email": params.customer_email,
            },
            "notificationDetails": {
                "email": params.customer_email,
                "mobile": params.customer_phone,
            },
        },
        "networkCode": params.service,
        "numberOfParcels": params.number_of_parcels,
        "totalWeight": round(params.total_weight, 2),
        "shippingRef1": params.order_id,
        "shippingRef2": params.order_ref,
        "shippingRef3": f"FJ-{int(time.time() * 1000)}",
        "liability": False,
    }
    if params.delivery_instructions:
        consignment["deliveryInstructions"] = params.delivery_instructions

    return {
        "jobId": None,
        "collectionOnDelivery": False,
        "invoice": None,
        "collectionDate": collection_date.isoformat(),
        "consolidate": False,
        "consignment": [consignment],
    }


def _first_consignment(data: dict[str, Any]) -> dict[str, Any]:
    for key in ("consignment", "consignmentDetail"):
        entries = data.get(key)
        if isinstance(entries, list) and entries:
            if isinstance(entries[0], dict):
                return entries[0]
    return {}


async def create_shipment(
    client: DPDClient,
    params: CreateShipmentParams,
    business: BusinessConfig,
) -> ShipmentResult:
    """Create a shipment and return the identifiers needed later."""
    data = await client.request(
        "POST",
        client.settings.shipment_endpoint,
        body=build_shipment_request(params, business),
    )
    data = data if isinstance(data, dict) else {}

    shipment_id = data.get("shipmentId")
    consignment = _first_consignment(data)
    consignment_number = consignment.get("consignmentNumber")
    parcel_numbers = consignment.get("parcelNumbers") or []
    parcel_number = parcel_numbers[0] if parcel_numbers else None

    if not shipment_id:
        raise IncompleteResponseError("shipmentId")
    if not consignment_number:
        raise IncompleteResponseError("consignmentNumber")
    if not parcel_number:
        raise IncompleteResponseError("parcelNumber")

    logger.info(
        "Created DPD shipment %s for order %s", shipment_id, params.order_id
    )
    return ShipmentResult(
        shipment_id=str(shipment_id),
        consignment_number=str(consignment_number),
        parcel_number=str(parcel_number),
        tracking_url=get_tracking_url(str(parcel_number), client.settings),
    )


async def generate_label(
    client: DPDClient, shipment_id: str | int, label_format: str
) -> str:
    """Fetch label data for a shipment in the given printer format."""
    endpoint = f"{client.settings.shipment_endpoint}/{shipment_id}/label/"
    response = await client.request(
        "GET",
        endpoint,
        headers={"Accept": get_accept_header(label_format)},
    )
    if isinstance(response, str) and response:
        return response
    if isinstance(response, dict) and isinstance(response.get("data"), str):
        return response["data"]
    raise LabelGenerationError("No label data received from DPD")


async def track_shipment(
    client: DPDClient, consignment_number: str
) -> TrackingResult:
    data = await client.request(
        "GET", f"{client.settings.tracking_endpoint}{consignment_number}"
    )
    if not isinstance(data, dict) or not data:
        raise UpstreamTerminalError(
            "No tracking data available", code="NO_TRACKING_DATA"
        )

    history = [
        StatusUpdate(
            status=map_dpd_status(str(event.get("status", ""))),
            timestamp=event.get("timestamp") or datetime.now(tz=UTC),
            message=event.get("message"),
            location=event.get("location"),
        )
        for event in data.get("history") or []
        if isinstance(event, dict)
    ]
    return TrackingResult(
        status=map_dpd_status(str(data.get("status") or "UNKNOWN")),
        status_history=history,
        estimated_delivery=data.get("estimatedDelivery"),
        actual_delivery=data.get("actualDelivery"),
    )


def normalise_postcode(postcode: str) -> str:
    return re.sub(r"\s", "", postcode).upper()


async def validate_address(
    client: DPDClient, postcode: str, town: str = ""
) -> AddressValidationResult:
    """Validate a UK postcode via postcodes.io and check DPD coverage.

    Lookups do not go through the DPD session; no retry is applied.
    """
    clean = normalise_postcode(postcode)
    if not UK_POSTCODE_RE.match(clean):
        return AddressValidationResult(
            valid=False,
            serviceable=False,
            message="Invalid UK postcode format",
        )

    url = f"{client.settings.postcode_api_url.rstrip('/')}/postcodes/{clean}"
    try:
        response = await client.http_client.get(
            url, timeout=client.settings.timeout_seconds
        )
    except httpx.HTTPError as exc:
        raise AddressLookupError(f"Postcode lookup failed: {exc}") from exc

    if response.status_code == 404:
        return AddressValidationResult(
            valid=False,
            serviceable=False,
            message="Postcode not found in UK database",
        )
    if not response.is_success:
        raise AddressLookupError(
            f"Postcode lookup failed: {response.reason_phrase}"
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise AddressLookupError(
            "Invalid response from postcode lookup"
        ) from exc
    result = body.get("result") if isinstance(body, dict) else None
    if not result:
        return AddressValidationResult(
            valid=False, serviceable=False, message="Invalid postcode"
        )

    country = str(result.get("country") or "")
    serviceable = country in SERVICEABLE_COUNTRIES

    returned_town = str(
        result.get("admin_district") or result.get("parish") or ""
    )
    if town:
        wanted, found = town.lower(), returned_town.lower()
        if wanted not in found and found not in wanted:
            return AddressValidationResult(
                valid=True,
                serviceable=serviceable,
                message=(
                    "Postcode valid but town mismatch. "
                    f"Expected: {returned_town}"
                ),
            )

    if serviceable:
        message = "Address is valid and serviceable by DPD"
    else:
        message = (
            "Address is valid but may not be serviceable by DPD "
            f"({country})"
        )
    return AddressValidationResult(
        valid=True, serviceable=serviceable, message=message
    )
