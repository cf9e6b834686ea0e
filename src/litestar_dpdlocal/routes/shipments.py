"""Shipment endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, ClassVar

from litestar import Controller, get, post
from litestar.params import Dependency

from litestar_dpdlocal import service
from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.config import DPDModuleConfig
from litestar_dpdlocal.exceptions import ConfigurationError
from litestar_dpdlocal.oplog import OperationLogger
from litestar_dpdlocal.protocols import DatabaseAdapter, StorageAdapter
from litestar_dpdlocal.schemas import (
    CompleteShipmentResult,
    CreateShipmentParams,
    GenerateLabelRequest,
    LabelResult,
    TrackingResult,
)
from litestar_dpdlocal.shipment import track_shipment

logger = logging.getLogger(__name__)


class ShipmentController(Controller):
    """Shipment, label and tracking endpoints."""

    path = "/shipments"
    tags: ClassVar[list[str]] = ["shipments"]

    @get("/health")
    async def shipments_health(self) -> dict[str, str]:
        """Healthcheck endpoint for shipment routes."""
        return {"status": "ok"}

    @post("/")
    async def create_shipment(
        self,
        data: CreateShipmentParams,
        config: Annotated[DPDModuleConfig, Dependency(skip_validation=True)],
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
        operation_logger: Annotated[
            OperationLogger, Dependency(skip_validation=True)
        ],
        database: Annotated[
            DatabaseAdapter | None, Dependency(skip_validation=True)
        ] = None,
        storage: Annotated[
            StorageAdapter | None, Dependency(skip_validation=True)
        ] = None,
    ) -> CompleteShipmentResult:
        """Create a DPD shipment, store its label and update the order."""
        if database is None:
            raise ConfigurationError("Database adapter not configured")
        if storage is None:
            raise ConfigurationError("Storage adapter not configured")
        if data.service not in config.services.enabled:
            raise ConfigurationError(f"Service {data.service} is not enabled")

        return await service.create_complete_shipment(
            data,
            config,
            client,
            database,
            storage,
            operation_logger=operation_logger,
        )

    @post("/{shipment_id:str}/label")
    async def regenerate_label(
        self,
        shipment_id: str,
        config: Annotated[DPDModuleConfig, Dependency(skip_validation=True)],
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
        storage: Annotated[
            StorageAdapter | None, Dependency(skip_validation=True)
        ] = None,
        data: GenerateLabelRequest | None = None,
    ) -> LabelResult:
        """Fetch a fresh label for an existing shipment."""
        if storage is None:
            raise ConfigurationError("Storage adapter not configured")
        label_format = (data.format if data else None) or config.labels.format
        return await service.regenerate_label(
            client, storage, shipment_id, label_format
        )

    @get("/tracking/{consignment_number:str}")
    async def track(
        self,
        consignment_number: str,
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
    ) -> TrackingResult:
        """Current status and history for a consignment."""
        return await track_shipment(client, consignment_number)
