"""Tests for the DPD operation log."""

import logging

import pytest

from litestar_dpdlocal.exceptions import UpstreamTerminalError
from litestar_dpdlocal.oplog import (
    MAX_BODY_SIZE,
    OperationLog,
    OperationLogger,
    OperationResult,
    sanitize_body,
    sanitize_endpoint,
    sanitize_headers,
)


def test_sanitize_endpoint_strips_secrets():
    """Secret query parameters are removed from endpoints."""
    cleaned = sanitize_endpoint("/user/?action=login&password=x&token=y")
    assert cleaned == "/user/?action=login"
    assert sanitize_endpoint("/shipping/shipment") == "/shipping/shipment"


def test_sanitize_headers_drops_credentials():
    """Authorization and session headers are not logged."""
    headers = {
        "Authorization": "Basic abc",
        "GeoSession": "tok",
        "Accept": "application/json",
    }
    assert sanitize_headers(headers) == {"Accept": "application/json"}
    assert sanitize_headers(None) is None


def test_sanitize_body_drops_credentials():
    """Password fields are removed from logged bodies."""
    body = {"username": "shop", "password": "x", "geoSession": "tok"}
    assert sanitize_body(body) == {"username": "shop"}
    assert sanitize_body(None) is None


def test_sanitize_body_truncates_large_payloads():
    """Oversized bodies are truncated before logging."""
    result = sanitize_body({"blob": "x" * (MAX_BODY_SIZE + 10)})

    assert isinstance(result, str)
    assert result.endswith("... [truncated]")
    assert len(result) == MAX_BODY_SIZE + len("... [truncated]")


async def test_logged_operation_records_success(database):
    """A successful operation is written to the log."""
    op_logger = OperationLogger(database)

    async def call():
        return OperationResult(data={"shipmentId": 1}, status_code=201)

    result = await op_logger.logged_operation(
        order_id="order-1",
        operation="create_shipment",
        endpoint="/shipping/shipment",
        method="POST",
        request_body={"password": "x", "jobId": None},
        call=call,
    )

    assert result == {"shipmentId": 1}
    [entry] = database.logs
    assert entry.success
    assert entry.status_code == 201
    assert entry.request_body == {"jobId": None}
    assert entry.duration_ms >= 0


async def test_logged_operation_records_failure_and_reraises(database):
    """A failed operation is logged and the error re-raised."""
    op_logger = OperationLogger(database)

    async def call():
        raise UpstreamTerminalError("Rejected", status_code=400)

    with pytest.raises(UpstreamTerminalError):
        await op_logger.logged_operation(
            order_id="order-1",
            operation="create_shipment",
            endpoint="/shipping/shipment",
            method="POST",
            call=call,
        )

    [entry] = database.logs
    assert not entry.success
    assert entry.status_code == 400
    assert entry.error == {
        "code": "UpstreamTerminalError",
        "message": "Rejected",
    }


async def test_failing_log_write_does_not_break_operation(caplog):
    """Errors writing the log do not fail the operation."""
    class BrokenDatabase:
        async def create_dpd_log(self, log):
            raise RuntimeError("disk full")

    op_logger = OperationLogger(BrokenDatabase())

    async def call():
        return OperationResult(data="ok")

    with caplog.at_level(logging.ERROR, logger="litestar_dpdlocal"):
        result = await op_logger.logged_operation(
            order_id="o",
            operation="track_shipment",
            endpoint="/shipping/network/CN1",
            method="GET",
            call=call,
        )

    assert result == "ok"
    assert "Failed to write DPD operation log" in caplog.text


async def test_disabled_logger_writes_nothing(database):
    """A disabled logger never touches the database."""
    op_logger = OperationLogger(database, enabled=False)

    await op_logger.log_operation(
        OperationLog(
            order_id="o",
            operation="auth",
            endpoint="/user/",
            method="POST",
            success=True,
            duration_ms=1,
            status_code=200,
        )
    )

    assert database.logs == []
