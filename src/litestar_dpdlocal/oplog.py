"""Audit log of DPD operations, written through the database adapter."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel

from litestar_dpdlocal.protocols import DatabaseAdapter

logger = logging.getLogger(__name__)

Operation = Literal[
    "auth",
    "validate_address",
    "create_shipment",
    "generate_label",
    "track_shipment",
    "webhook",
]

MAX_BODY_SIZE = 10_000
SENSITIVE_QUERY_PARAMS = frozenset({"password", "token", "key"})
SENSITIVE_HEADERS = frozenset(
    {"authorization", "geosession", "set-cookie"}
)
SENSITIVE_BODY_FIELDS = frozenset(
    {"password", "passwordHash", "token", "geoSession"}
)


@dataclass
class OperationLog:
    order_id: str
    operation: Operation
    endpoint: str
    method: str
    success: bool
    duration_ms: int
    status_code: int
    consignment_number: str | None = None
    request_headers: dict[str, str] | None = None
    request_body: Any = None
    response_headers: dict[str, str] | None = None
    response_body: Any = None
    error: dict[str, str] | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass
class OperationResult:
    """What a logged operation hands back: payload plus HTTP details."""

    data: Any
    status_code: int = 200
    headers: dict[str, str] | None = None


def sanitize_endpoint(endpoint: str) -> str:
    parts = urlsplit(endpoint)
    if not parts.query:
        return endpoint
    query = [
        (name, value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
        if name not in SENSITIVE_QUERY_PARAMS
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))


def sanitize_headers(
    headers: Mapping[str, str] | None,
) -> dict[str, str] | None:
    if headers is None:
        return None
    return {
        name: value
        for name, value in headers.items()
        if name.lower() not in SENSITIVE_HEADERS
    }


def sanitize_body(body: Any) -> Any:
    """Drop credential fields and cap the serialized size."""
    if not body:
        return None
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    if isinstance(body, dict):
        body = {
            key: value
            for key, value in body.items()
            if key not in SENSITIVE_BODY_FIELDS
        }
    serialized = json.dumps(body, default=str)
    if len(serialized) > MAX_BODY_SIZE:
        return serialized[:MAX_BODY_SIZE] + "... [truncated]"
    return body


class OperationLogger:
    """Records DPD operations to the host database.

    A failing log write is reported and swallowed so that logging never
    breaks the operation being logged.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter | None = None,
        *,
        enabled: bool = True,
        log_to_database: bool = True,
    ) -> None:
        self.adapter = adapter
        self.enabled = enabled
        self.log_to_database = log_to_database

    async def log_operation(self, entry: OperationLog) -> None:
        if not self.enabled:
            return

        entry.endpoint = sanitize_endpoint(entry.endpoint)
        entry.request_headers = sanitize_headers(entry.request_headers)
        entry.response_headers = sanitize_headers(entry.response_headers)
        entry.request_body = sanitize_body(entry.request_body)
        entry.response_body = sanitize_body(entry.response_body)

        logger.log(
            logging.INFO if entry.success else logging.WARNING,
            "DPD %s %s: %s %s (%d) in %dms",
            entry.operation,
            "succeeded" if entry.success else "failed",
            entry.method,
            entry.endpoint,
            entry.status_code,
            entry.duration_ms,
        )

        if self.log_to_database and self.adapter is not None:
            try:
                await self.adapter.create_dpd_log(entry)
            except Exception:
                logger.exception("Failed to write DPD operation log")

    async def logged_operation(
        self,
        *,
        order_id: str,
        operation: Operation,
        endpoint: str,
        method: str,
        call: Callable[[], Awaitable[OperationResult]],
        request_body: Any = None,
        consignment_number: str | None = None,
    ) -> Any:
        """Run ``call``, log its outcome and return its data.

        Exceptions are logged and re-raised unchanged.
        """
        started = time.perf_counter()
        try:
            result = await call()
        except Exception as exc:
            error = {"code": type(exc).__name__, "message": str(exc)}
            await self.log_operation(
                OperationLog(
                    order_id=order_id,
                    operation=operation,
                    endpoint=endpoint,
                    method=method,
                    success=False,
                    duration_ms=_elapsed_ms(started),
                    status_code=getattr(exc, "status_code", None) or 500,
                    consignment_number=consignment_number,
                    request_body=request_body,
                    response_body=error,
                    error=error,
                )
            )
            raise

        await self.log_operation(
            OperationLog(
                order_id=order_id,
                operation=operation,
                endpoint=endpoint,
                method=method,
                success=True,
                duration_ms=_elapsed_ms(started),
                status_code=result.status_code,
                consignment_number=consignment_number,
                request_body=request_body,
                response_headers=result.headers,
                response_body=result.data,
            )
        )
        return result.data


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
