"""Router factory for litestar-dpdlocal."""

from __future__ import annotations

from litestar import Router
from litestar.di import Provide

from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.config import DPDModuleConfig
from litestar_dpdlocal.exceptions import EXCEPTION_HANDLERS
from litestar_dpdlocal.oplog import OperationLogger
from litestar_dpdlocal.protocols import DatabaseAdapter, StorageAdapter
from litestar_dpdlocal.routes.addresses import AddressController
from litestar_dpdlocal.routes.auth import AuthController
from litestar_dpdlocal.routes.shipments import ShipmentController


def create_dpd_router(
    *,
    config: DPDModuleConfig,
    client: DPDClient,
    database: DatabaseAdapter | None = None,
    storage: StorageAdapter | None = None,
    operation_logger: OperationLogger | None = None,
) -> Router:
    """Create a configured Litestar router.

    Args:
        config: DPD module configuration.
        client: DPD API client shared by all handlers.
        database: Order and saved-address persistence.
        storage: Label file storage.
        operation_logger: Audit logger for shipment operations. Writes
            through ``database`` if not provided.

    Returns:
        A Litestar Router with shipment, address and auth endpoints.
    """
    actual_logger = operation_logger or OperationLogger(database)

    return Router(
        path="/",
        route_handlers=[
            ShipmentController,
            AddressController,
            AuthController,
        ],
        dependencies={
            "config": Provide(lambda: config, sync_to_thread=False),
            "client": Provide(lambda: client, sync_to_thread=False),
            "database": Provide(lambda: database, sync_to_thread=False),
            "storage": Provide(lambda: storage, sync_to_thread=False),
            "operation_logger": Provide(
                lambda: actual_logger,
                sync_to_thread=False,
            ),
        },
        exception_handlers=EXCEPTION_HANDLERS,
    )
