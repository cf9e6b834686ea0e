"""High-level DPD operations tying the client to host adapters."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.config import DPDModuleConfig
from litestar_dpdlocal.exceptions import (
    AddressLookupError,
    DPDError,
    OrderUpdateError,
)
from litestar_dpdlocal.labels import LABEL_FILE_EXTENSIONS
from litestar_dpdlocal.oplog import OperationLogger, OperationResult
from litestar_dpdlocal.pricing import (
    calculate_delivery_fee,
    calculate_dpd_cost,
    get_estimated_delivery_date,
    get_next_collection_date,
)
from litestar_dpdlocal.protocols import DatabaseAdapter, StorageAdapter
from litestar_dpdlocal.schemas import (
    Address,
    AddressValidationResult,
    AuthStatus,
    CompleteShipmentResult,
    ConnectionTestResult,
    CostBreakdown,
    CreateShipmentParams,
    LabelResult,
    SavedAddress,
    ShipmentResult,
    ShipmentStatus,
    ShippingData,
    StatusUpdate,
)
from litestar_dpdlocal.shipment import (
    create_shipment,
    generate_label,
    validate_address,
)

logger = logging.getLogger(__name__)


async def create_complete_shipment(
    params: CreateShipmentParams,
    config: DPDModuleConfig,
    client: DPDClient,
    database: DatabaseAdapter,
    storage: StorageAdapter,
    *,
    operation_logger: OperationLogger | None = None,
) -> CompleteShipmentResult:
    """Create the shipment, store its label and record it on the order.

    A label failure leaves the shipment in place and is reported through
    ``error``; failing to update the order raises OrderUpdateError.
    """
    op_logger = operation_logger or OperationLogger(enabled=False)

    async def _create() -> OperationResult:
        return OperationResult(
            data=await create_shipment(client, params, config.business)
        )

    shipment: ShipmentResult = await op_logger.logged_operation(
        order_id=params.order_id,
        operation="create_shipment",
        endpoint=client.settings.shipment_endpoint,
        method="POST",
        request_body=params.model_dump(mode="json"),
        call=_create,
    )

    async def _label() -> OperationResult:
        return OperationResult(
            data=await generate_and_upload_label(
                client, storage, shipment.shipment_id, config.labels.format
            )
        )

    try:
        label: LabelResult = await op_logger.logged_operation(
            order_id=params.order_id,
            consignment_number=shipment.consignment_number,
            operation="generate_label",
            endpoint=(
                f"{client.settings.shipment_endpoint}/"
                f"{shipment.shipment_id}/label/"
            ),
            method="GET",
            call=_label,
        )
    except DPDError as exc:
        logger.warning(
            "Label generation failed for shipment %s: %s",
            shipment.shipment_id,
            exc,
        )
        return CompleteShipmentResult(
            shipment=shipment,
            error=f"Shipment created but label generation failed: {exc}",
        )

    service_pricing = config.pricing.services.get(params.service)
    dpd_cost = calculate_dpd_cost(params.total_weight, params.service, config)
    now = datetime.now(tz=UTC)
    collection_date = params.collection_date or get_next_collection_date()
    shipping = ShippingData(
        service=params.service,
        shipment_id=shipment.shipment_id,
        consignment_number=shipment.consignment_number,
        parcel_number=shipment.parcel_number,
        tracking_url=shipment.tracking_url,
        label_url=label.label_url or "",
        status=ShipmentStatus.LABEL_GENERATED,
        status_history=[
            StatusUpdate(
                status=ShipmentStatus.CREATED,
                timestamp=now,
                message="Shipment created with DPD",
            ),
            StatusUpdate(
                status=ShipmentStatus.LABEL_GENERATED,
                timestamp=now,
                message="Shipping label generated",
            ),
        ],
        cost=CostBreakdown(
            base_price=service_pricing.base_price,
            weight_charge=params.total_weight * service_pricing.per_kg_price,
            total_cost=dpd_cost,
            customer_charge=calculate_delivery_fee(0, params.service, config),
        ),
        total_weight=params.total_weight,
        parcels=params.number_of_parcels,
        collection_date=collection_date,
        estimated_delivery=get_estimated_delivery_date(
            params.service, collection_date
        ),
        created_at=now,
        updated_at=now,
    )

    try:
        await database.update_order(
            params.order_id, {"shipping": shipping.model_dump(mode="json")}
        )
    except Exception as exc:
        logger.critical(
            "Failed to update order %s with shipping data for shipment %s",
            params.order_id,
            shipment.shipment_id,
            exc_info=True,
        )
        raise OrderUpdateError(
            f"Shipment created but failed to update order: {exc}"
        ) from exc

    return CompleteShipmentResult(shipment=shipment, label_url=label.label_url)


async def generate_and_upload_label(
    client: DPDClient,
    storage: StorageAdapter,
    shipment_id: str | int,
    label_format: str,
) -> LabelResult:
    """Fetch a label from DPD and store it via the storage adapter."""
    label_data = await generate_label(client, shipment_id, label_format)
    extension = LABEL_FILE_EXTENSIONS.get(label_format, "txt")
    file_name = f"{shipment_id}-{int(time.time() * 1000)}.{extension}"
    label_url = await storage.upload_label(label_data, file_name)
    return LabelResult(label_data=label_data, label_url=label_url)


async def regenerate_label(
    client: DPDClient,
    storage: StorageAdapter,
    shipment_id: str | int,
    label_format: str,
) -> LabelResult:
    return await generate_and_upload_label(
        client, storage, shipment_id, label_format
    )


async def get_label_url(
    consignment_number: str, storage: StorageAdapter
) -> str | None:
    try:
        return await storage.get_label(consignment_number)
    except Exception:
        logger.warning(
            "Could not get label for %s", consignment_number, exc_info=True
        )
        return None


async def validate_delivery_address(
    client: DPDClient, postcode: str, town: str = ""
) -> AddressValidationResult:
    return await validate_address(client, postcode, town)


async def save_address(
    client: DPDClient,
    database: DatabaseAdapter,
    user_id: str,
    address: Address,
    *,
    label: str | None = None,
    is_default: bool = False,
) -> str:
    """Validate an address and store it for the user. Returns its ID."""
    try:
        validation = await validate_address(
            client, address.postcode, address.town
        )
        validated = validation.valid
    except AddressLookupError:
        logger.warning(
            "Postcode lookup failed for %s, saving unvalidated",
            address.postcode,
            exc_info=True,
        )
        validated = False

    now = datetime.now(tz=UTC)
    saved = SavedAddress(
        **address.model_dump(),
        user_id=user_id,
        label=label,
        is_default=is_default,
        validated=validated,
        validated_at=now if validated else None,
        created_at=now,
        updated_at=now,
    )
    return await database.create_saved_address(saved)


async def get_saved_addresses(
    user_id: str, database: DatabaseAdapter
) -> list[SavedAddress]:
    return await database.get_saved_addresses(user_id)


async def get_saved_address(
    address_id: str, database: DatabaseAdapter
) -> SavedAddress | None:
    return await database.get_saved_address(address_id)


async def update_saved_address(
    address_id: str, data: dict[str, Any], database: DatabaseAdapter
) -> None:
    await database.update_saved_address(
        address_id, {**data, "updated_at": datetime.now(tz=UTC)}
    )


async def delete_saved_address(
    address_id: str, database: DatabaseAdapter
) -> None:
    await database.delete_saved_address(address_id)


async def test_connection(client: DPDClient) -> ConnectionTestResult:
    """Check credentials with one fresh login, without retries."""
    await client.sessions.clear()
    try:
        session = await client.authenticator.authenticate(client.credentials)
    except DPDError as exc:
        return ConnectionTestResult(success=False, message=str(exc))
    await client.sessions.store.save(session)
    return ConnectionTestResult(
        success=True, message="Successfully connected to DPD API"
    )


async def get_auth_status(client: DPDClient) -> AuthStatus:
    """Report whether a session is available, logging in once if needed."""
    try:
        await client.get_session_token(max_attempts=1)
    except DPDError as exc:
        logger.info("DPD authentication unavailable: %s", exc)
        return AuthStatus(authenticated=False)
    session = await client.sessions.current_session()
    return AuthStatus(
        authenticated=True,
        expires_at=session.expires_at if session else None,
    )
