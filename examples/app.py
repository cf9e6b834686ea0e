"""Litestar example app wired to DPD Local with in-memory adapters.

Credentials come from DPD_* environment variables, for example::

    DPD_ACCOUNT_NUMBER=... DPD_USERNAME=... DPD_PASSWORD=... \
        litestar --app examples.app:app run
"""

from __future__ import annotations

import logging
import uuid

from litestar import Litestar

from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.config import (
    BusinessConfig,
    CollectionAddress,
    DPDModuleConfig,
    DPDSettings,
)
from litestar_dpdlocal.oplog import OperationLog
from litestar_dpdlocal.plugin import create_dpd_router
from litestar_dpdlocal.schemas import SavedAddress

logging.basicConfig(level=logging.INFO)


class InMemoryDatabase:
    def __init__(self) -> None:
        self.orders: dict[str, dict] = {}
        self.addresses: dict[str, SavedAddress] = {}
        self.logs: list[OperationLog] = []

    async def get_order(self, order_id: str) -> dict | None:
        return self.orders.get(order_id)

    async def update_order(self, order_id: str, data: dict) -> None:
        self.orders.setdefault(order_id, {}).update(data)

    async def get_saved_addresses(self, user_id: str) -> list[SavedAddress]:
        return [a for a in self.addresses.values() if a.user_id == user_id]

    async def get_saved_address(self, address_id: str) -> SavedAddress | None:
        return self.addresses.get(address_id)

    async def create_saved_address(self, address: SavedAddress) -> str:
        address_id = str(uuid.uuid4())
        self.addresses[address_id] = address.model_copy(
            update={"id": address_id}
        )
        return address_id

    async def update_saved_address(self, address_id: str, data: dict) -> None:
        self.addresses[address_id] = self.addresses[address_id].model_copy(
            update=data
        )

    async def delete_saved_address(self, address_id: str) -> None:
        self.addresses.pop(address_id, None)

    async def create_dpd_log(self, log: OperationLog) -> str:
        self.logs.append(log)
        return str(len(self.logs))


class InMemoryStorage:
    def __init__(self) -> None:
        self.labels: dict[str, str] = {}

    async def upload_label(self, label_data: str, file_name: str) -> str:
        self.labels[file_name] = label_data
        return f"memory://labels/{file_name}"

    async def get_label(self, file_name: str) -> str:
        if file_name not in self.labels:
            raise KeyError(file_name)
        return f"memory://labels/{file_name}"

    async def delete_label(self, file_name: str) -> None:
        self.labels.pop(file_name, None)


settings = DPDSettings()
credentials = settings.get_credentials()
dpd_client = DPDClient(credentials, settings)

app = Litestar(
    route_handlers=[
        create_dpd_router(
            config=DPDModuleConfig(
                credentials=credentials,
                business=BusinessConfig(
                    name="Demo Shop",
                    collection_address=CollectionAddress(
                        property="1",
                        street="Example Street",
                        town="Leeds",
                        postcode="LS1 4AP",
                    ),
                    contact_name="Dispatch",
                    contact_phone="01130000000",
                    contact_email="dispatch@example.com",
                ),
            ),
            client=dpd_client,
            database=InMemoryDatabase(),
            storage=InMemoryStorage(),
        )
    ],
    on_shutdown=[dpd_client.aclose],
)
