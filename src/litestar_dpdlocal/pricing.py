"""Delivery pricing, service names and collection/delivery dates."""

from __future__ import annotations

from datetime import date, timedelta
from urllib.parse import urlencode

from litestar_dpdlocal.config import DPDModuleConfig, DPDSettings
from litestar_dpdlocal.exceptions import ConfigurationError

SERVICE_NAMES: dict[str, str] = {
    "12": "Next Day Delivery",
    "07": "By 12 PM Delivery",
}

SERVICE_DESCRIPTIONS: dict[str, str] = {
    "12": "Standard next day delivery - most affordable option",
    "07": "Premium delivery by 12 PM the next day",
}

SUNDAY = 6


def calculate_delivery_fee(
    subtotal: float, service: str, config: DPDModuleConfig
) -> float:
    """Fee charged to the customer; free above the threshold."""
    pricing = config.pricing
    if subtotal >= pricing.free_delivery_threshold:
        return 0.0
    service_pricing = pricing.services.get(service)
    if service_pricing is not None and service_pricing.customer_price:
        return service_pricing.customer_price
    return pricing.flat_delivery_fee


def calculate_dpd_cost(
    weight: float, service: str, config: DPDModuleConfig
) -> float:
    """What DPD charges: base price plus a per-kg charge."""
    service_pricing = config.pricing.services.get(service)
    if service_pricing is None:
        raise ConfigurationError(f"Invalid service code: {service}")
    return service_pricing.base_price + weight * service_pricing.per_kg_price


def qualifies_for_free_delivery(
    subtotal: float, config: DPDModuleConfig
) -> bool:
    return subtotal >= config.pricing.free_delivery_threshold


def meets_minimum_order_value(
    subtotal: float, config: DPDModuleConfig
) -> bool:
    return subtotal >= config.pricing.minimum_order_value


def get_next_collection_date(today: date | None = None) -> date:
    """DPD does not collect on Sundays."""
    collection = today or date.today()
    if collection.weekday() == SUNDAY:
        collection += timedelta(days=1)
    return collection


def get_estimated_delivery_date(
    service: str, collection_date: date | None = None
) -> date:
    # Both services are next-day; only the cut-off time differs.
    delivery = (collection_date or date.today()) + timedelta(days=1)
    if delivery.weekday() == SUNDAY:
        delivery += timedelta(days=1)
    return delivery


def get_tracking_url(
    parcel_number: str, settings: DPDSettings | None = None
) -> str:
    base = (settings or DPDSettings()).tracking_page_url
    return f"{base}?{urlencode({'parcelNumber': parcel_number})}"


def is_valid_service_code(code: str, config: DPDModuleConfig) -> bool:
    return code in config.services.enabled


def get_service_name(code: str) -> str:
    return SERVICE_NAMES.get(code, code)


def get_service_description(code: str) -> str:
    return SERVICE_DESCRIPTIONS.get(code, "")
