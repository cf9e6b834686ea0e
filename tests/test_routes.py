"""HTTP route tests."""

import httpx
from conftest import AUTH_PATH, SHIPMENT_PATH, shipment_response
from litestar import Litestar
from litestar.testing import TestClient

from litestar_dpdlocal.plugin import create_dpd_router

LABEL_PATH = "/shipping/shipment/12345/label/"

SHIPMENT_PAYLOAD = {
    "order_id": "order-1",
    "order_ref": "FJ-1001",
    "service": "12",
    "delivery_address": {
        "property": "10",
        "street": "Downing Street",
        "town": "London",
        "postcode": "SW1A 2AA",
        "contact_name": "Alex Doe",
        "contact_phone": "07700900000",
    },
    "total_weight": 2.0,
    "customer_email": "alex@example.com",
}


def test_health(client) -> None:
    """Health endpoint responds OK."""
    response = client.get("/shipments/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_shipment(client, fake_dpd, database) -> None:
    """POST /shipments creates a shipment and stores its label."""
    fake_dpd.queue("POST", SHIPMENT_PATH, shipment_response())
    fake_dpd.queue("GET", LABEL_PATH, httpx.Response(200, text="LABEL"))

    response = client.post("/shipments", json=SHIPMENT_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["shipment"]["consignment_number"] == "CN123"
    assert body["error"] is None
    assert database.orders["order-1"]["shipping"]["consignment_number"] == (
        "CN123"
    )
    assert len(database.logs) == 2


def test_create_shipment_upstream_rejection(client, fake_dpd) -> None:
    """DPD rejections map to a 502 response."""
    fake_dpd.queue(
        "POST",
        SHIPMENT_PATH,
        httpx.Response(
            400,
            json={"error": {"errorMessage": "Invalid delivery postcode"}},
        ),
    )

    response = client.post("/shipments", json=SHIPMENT_PAYLOAD)

    assert response.status_code == 502
    assert response.json() == {
        "detail": "Invalid delivery postcode",
        "code": "upstream_error",
    }


def test_create_shipment_rejects_invalid_payload(client) -> None:
    """Malformed shipment payloads are rejected."""
    response = client.post(
        "/shipments", json={**SHIPMENT_PAYLOAD, "total_weight": 0}
    )

    assert response.status_code == 400


def test_create_shipment_rejects_disabled_service(
    module_config, dpd_client, database, storage
) -> None:
    """Disabled services cannot be booked."""
    config = module_config.model_copy(
        update={
            "services": module_config.services.model_copy(
                update={"enabled": ["12"]}
            )
        }
    )
    app = Litestar(
        route_handlers=[
            create_dpd_router(
                config=config,
                client=dpd_client,
                database=database,
                storage=storage,
            )
        ]
    )

    with TestClient(app=app) as tc:
        response = tc.post(
            "/shipments", json={**SHIPMENT_PAYLOAD, "service": "07"}
        )

    assert response.status_code == 500
    assert response.json()["code"] == "configuration_error"


def test_create_shipment_without_adapters(module_config, dpd_client) -> None:
    """Missing adapters are reported as misconfiguration."""
    app = Litestar(
        route_handlers=[
            create_dpd_router(config=module_config, client=dpd_client)
        ]
    )

    with TestClient(app=app) as tc:
        response = tc.post("/shipments", json=SHIPMENT_PAYLOAD)

    assert response.status_code == 500
    assert response.json() == {
        "detail": "Database adapter not configured",
        "code": "configuration_error",
    }


def test_regenerate_label(client, fake_dpd, storage) -> None:
    """A label can be regenerated for a shipment."""
    fake_dpd.queue("GET", LABEL_PATH, httpx.Response(200, text="<html/>"))

    response = client.post(
        "/shipments/12345/label", json={"format": "html"}
    )

    assert response.status_code == 201
    assert response.json()["label_url"].endswith(".html")
    request = fake_dpd.requests_to(LABEL_PATH)[0]
    assert request.headers["Accept"] == "text/html"


def test_track(client, fake_dpd) -> None:
    """Tracking returns the parcel's latest status."""
    fake_dpd.queue(
        "GET",
        "/shipping/network/CN123",
        httpx.Response(200, json={"data": {"status": "Delivered"}}),
    )

    response = client.get("/shipments/tracking/CN123")

    assert response.status_code == 200
    assert response.json()["status"] == "delivered"


def test_validate_address(client, fake_dpd) -> None:
    """Postcodes can be validated over HTTP."""
    fake_dpd.queue(
        "GET",
        "/postcodes/SW1A2AA",
        httpx.Response(
            200,
            json={"result": {"country": "Wales", "admin_district": "Cardiff"}},
        ),
    )

    response = client.post(
        "/addresses/validate", json={"postcode": "SW1A 2AA"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "valid": True,
        "serviceable": True,
        "message": "Address is valid and serviceable by DPD",
    }


def test_validate_address_lookup_failure(client, fake_dpd) -> None:
    """Lookup failures map to a 502 response."""
    fake_dpd.queue(
        "GET", "/postcodes/SW1A2AA", httpx.ConnectError("unreachable")
    )

    response = client.post(
        "/addresses/validate", json={"postcode": "SW1A 2AA"}
    )

    assert response.status_code == 502
    assert response.json()["code"] == "address_lookup_error"


def test_save_and_list_addresses(client, fake_dpd) -> None:
    """Saved addresses are listed for their user."""
    fake_dpd.queue(
        "GET",
        "/postcodes/SW1A2AA",
        httpx.Response(
            200,
            json={
                "result": {"country": "England", "admin_district": "London"}
            },
        ),
    )

    response = client.post(
        "/addresses",
        json={
            **SHIPMENT_PAYLOAD["delivery_address"],
            "user_id": "user-1",
            "label": "Home",
        },
    )
    assert response.status_code == 201
    address_id = response.json()["id"]

    response = client.get("/addresses/user-1")
    assert response.status_code == 200
    [saved] = response.json()
    assert saved["id"] == address_id
    assert saved["validated"] is True
    assert saved["label"] == "Home"


def test_auth_status(client, fake_dpd) -> None:
    """Auth status reports an active session."""
    response = client.get("/auth/status")

    assert response.status_code == 200
    assert response.json()["authenticated"] is True


def test_auth_test_endpoint_reports_failure(client, fake_dpd) -> None:
    """The auth test endpoint reports failed logins."""
    fake_dpd.queue(
        "POST",
        AUTH_PATH,
        httpx.Response(401, json={"error": {"errorMessage": "Bad login"}}),
    )

    response = client.post("/auth/test")

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Bad login"}
