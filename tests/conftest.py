"""Shared fixtures for litestar-dpdlocal tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from litestar import Litestar
from litestar.testing import TestClient

from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.config import (
    BusinessConfig,
    CollectionAddress,
    DPDCredentials,
    DPDModuleConfig,
    DPDSettings,
)
from litestar_dpdlocal.oplog import OperationLog, OperationLogger
from litestar_dpdlocal.plugin import create_dpd_router
from litestar_dpdlocal.schemas import (
    Address,
    CreateShipmentParams,
    SavedAddress,
)

AUTH_PATH = "/user/"
SHIPMENT_PATH = "/shipping/shipment"

# A Tuesday, well inside the working day.
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSleep:
    """Backoff sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeDPD:
    """httpx handler emulating the DPD and postcodes.io endpoints.

    Responses queued for a (method, path) are served in order; the last
    one keeps being served. Unqueued logins succeed with a new token.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list] = {}
        self.logins = 0

    def queue(self, method: str, path: str, *responses) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        queued = self.routes.get(key)
        if queued:
            item = queued.pop(0) if len(queued) > 1 else queued[0]
            if isinstance(item, Exception):
                raise item
            return item
        if key == ("POST", AUTH_PATH):
            self.logins += 1
            return httpx.Response(
                200, json={"data": {"geoSession": f"token-{self.logins}"}}
            )
        return httpx.Response(
            404, json={"error": {"errorMessage": "Route not faked"}}
        )


class InMemoryDatabase:
    def __init__(self) -> None:
        self.orders: dict[str, dict] = {}
        self.addresses: dict[str, SavedAddress] = {}
        self.logs: list[OperationLog] = []
        self.fail_updates = False
        self._counter = 0

    async def get_order(self, order_id: str) -> dict | None:
        return self.orders.get(order_id)

    async def update_order(self, order_id: str, data: dict) -> None:
        if self.fail_updates:
            raise RuntimeError("database unavailable")
        self.orders.setdefault(order_id, {}).update(data)

    async def get_saved_addresses(self, user_id: str) -> list[SavedAddress]:
        return [a for a in self.addresses.values() if a.user_id == user_id]

    async def get_saved_address(self, address_id: str) -> SavedAddress | None:
        return self.addresses.get(address_id)

    async def create_saved_address(self, address: SavedAddress) -> str:
        self._counter += 1
        address_id = f"addr-{self._counter}"
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
        return f"log-{len(self.logs)}"


class InMemoryStorage:
    def __init__(self) -> None:
        self.files: dict[str, str] = {}

    async def upload_label(self, label_data: str, file_name: str) -> str:
        self.files[file_name] = label_data
        return f"https://labels.test/{file_name}"

    async def get_label(self, file_name: str) -> str:
        if file_name not in self.files:
            raise KeyError(file_name)
        return f"https://labels.test/{file_name}"

    async def delete_label(self, file_name: str) -> None:
        self.files.pop(file_name, None)


def shipment_response(
    shipment_id: int = 12345,
    consignment_number: str = "CN123",
    parcel_number: str = "PN123",
) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "error": None,
            "data": {
                "shipmentId": shipment_id,
                "consignmentDetail": [
                    {
                        "consignmentNumber": consignment_number,
                        "parcelNumbers": [parcel_number],
                    }
                ],
            },
        },
    )


@pytest.fixture()
def fake_dpd() -> FakeDPD:
    return FakeDPD()


@pytest.fixture()
def http_client(fake_dpd: FakeDPD) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_dpd.handler))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def credentials() -> DPDCredentials:
    return DPDCredentials(
        account_number="ACC123", username="shop", password="s3cret"
    )


@pytest.fixture()
def settings() -> DPDSettings:
    return DPDSettings()


@pytest.fixture()
def dpd_client(
    credentials: DPDCredentials,
    settings: DPDSettings,
    http_client: httpx.AsyncClient,
    sleep: RecordingSleep,
    clock: FakeClock,
) -> DPDClient:
    return DPDClient(
        credentials,
        settings,
        http_client=http_client,
        sleep=sleep,
        clock=clock,
    )


@pytest.fixture()
def module_config(credentials: DPDCredentials) -> DPDModuleConfig:
    return DPDModuleConfig(
        credentials=credentials,
        business=BusinessConfig(
            name="Fresh Jams",
            collection_address=CollectionAddress(
                organisation="Fresh Jams Ltd",
                property="Unit 4",
                street="Mill Lane",
                town="Leeds",
                postcode="LS1 4AP",
            ),
            contact_name="Sam Baker",
            contact_phone="01130000000",
            contact_email="dispatch@freshjams.test",
        ),
    )


@pytest.fixture()
def delivery_address() -> Address:
    return Address(
        property="10",
        street="Downing Street",
        town="London",
        postcode="SW1A 2AA",
        contact_name="Alex Doe",
        contact_phone="07700900000",
    )


@pytest.fixture()
def shipment_params(delivery_address: Address) -> CreateShipmentParams:
    return CreateShipmentParams(
        order_id="order-1",
        order_ref="FJ-1001",
        delivery_address=delivery_address,
        total_weight=4.5,
        customer_email="alex@example.com",
        customer_phone="07700900000",
    )


@pytest.fixture()
def database() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def test_app(
    module_config: DPDModuleConfig,
    dpd_client: DPDClient,
    database: InMemoryDatabase,
    storage: InMemoryStorage,
) -> Litestar:
    router = create_dpd_router(
        config=module_config,
        client=dpd_client,
        database=database,
        storage=storage,
        operation_logger=OperationLogger(database),
    )
    return Litestar(route_handlers=[router])


@pytest.fixture()
def client(test_app: Litestar) -> Iterator[TestClient]:
    with TestClient(app=test_app) as tc:
        yield tc


# ---------------------------------------------------------------------------
# SQLAlchemy fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
async def async_engine():
    from sqlalchemy.ext.asyncio import create_async_engine

    from litestar_dpdlocal.contrib.sqlalchemy.models import Base

    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def async_session_factory(async_engine):
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    return async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
