"""Classification of raw DPD responses into a closed set of outcomes.

DPD signals errors inconsistently: an ``error`` field may come with or
without ``data``, label endpoints answer in plain text but may return a JSON
error instead, and failures do not always carry a non-2xx status. Every
response is reduced here to exactly one of :class:`Success`,
:class:`SuccessWithWarning`, :class:`RecoverableFailure` or
:class:`TerminalFailure`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from litestar_dpdlocal.exceptions import (
    AuthExpiredError,
    DPDError,
    MalformedResponseError,
    UpstreamTerminalError,
)


class FailureKind(StrEnum):
    AUTH_EXPIRED = "auth_expired"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class Success:
    payload: Any


@dataclass(frozen=True)
class SuccessWithWarning:
    """DPD returned data together with an error field; the data wins."""

    payload: Any
    warning: Any


@dataclass(frozen=True)
class RecoverableFailure:
    kind: FailureKind
    error: DPDError


@dataclass(frozen=True)
class TerminalFailure:
    error: DPDError


Outcome = Success | SuccessWithWarning | RecoverableFailure | TerminalFailure


def parse_json_body(raw: str) -> tuple[bool, Any]:
    """Parse a response body. Returns ``(parsed, value)``.

    An empty body parses to None.
    """
    if not raw:
        return True, None
    try:
        return True, json.loads(raw)
    except ValueError:
        return False, None


def has_data(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, dict | list | str):
        return len(value) > 0
    if isinstance(value, bool):
        return value
    return True


def _first_error(error: Any) -> Any:
    if isinstance(error, list):
        return error[0] if error else None
    return error


def extract_error_message(
    error: Any, fallback: str, *, detailed: bool = False
) -> str:
    """Most specific message available in a DPD error object.

    Priority: ``errorMessage``, ``errorAction``, ``obj``, then the
    serialized error, then ``fallback``. With ``detailed`` (label requests)
    a nested ``errors[0]`` message and the error ``name`` are tried before
    serializing.
    """
    first = _first_error(error)
    if isinstance(first, dict):
        for key in ("errorMessage", "errorAction", "obj"):
            if first.get(key):
                return str(first[key])
        if detailed:
            nested = first.get("errors")
            if (
                isinstance(nested, list)
                and nested
                and isinstance(nested[0], dict)
            ):
                detail = nested[0].get("errorMessage") or nested[0].get(
                    "message"
                )
                if detail:
                    return str(detail)
            if first.get("name"):
                return str(first["name"])
    elif isinstance(first, str) and first:
        return first
    if error is None or error is False or error == "":
        return fallback
    return json.dumps(error)


def extract_error_code(error: Any) -> str:
    first = _first_error(error)
    if isinstance(first, dict):
        code = first.get("errorCode") or first.get("name")
        if code:
            return str(code)
    return "UNKNOWN"


def _status_text(status_code: int, reason: str) -> str:
    return f"{status_code} {reason}".strip()


def classify_response(
    status_code: int,
    reason: str,
    raw: str,
    *,
    expect_json: bool = True,
) -> Outcome:
    """Reduce a DPD response to one outcome.

    ``expect_json`` is False for label requests, whose successful bodies are
    returned verbatim unless they turn out to be a JSON error.
    """
    ok = 200 <= status_code < 300
    parsed, body = parse_json_body(raw)

    if not parsed:
        if status_code == 401:
            return RecoverableFailure(
                FailureKind.AUTH_EXPIRED,
                AuthExpiredError(raw or _status_text(status_code, reason)),
            )
        if not ok:
            return TerminalFailure(
                UpstreamTerminalError(
                    raw
                    or f"Request failed: {_status_text(status_code, reason)}",
                    code=str(status_code),
                    status_code=status_code,
                )
            )
        if expect_json:
            return TerminalFailure(
                MalformedResponseError(
                    "Invalid JSON response from DPD API", body=raw
                )
            )
        return Success(raw)

    envelope = body if isinstance(body, dict) else {}
    error = envelope.get("error")
    data = envelope.get("data")

    if not ok or (error and not has_data(data)):
        message = extract_error_message(
            error,
            fallback=f"Request failed: {_status_text(status_code, reason)}",
            detailed=not expect_json,
        )
        if status_code == 401:
            return RecoverableFailure(
                FailureKind.AUTH_EXPIRED,
                AuthExpiredError(message, status_code=status_code),
            )
        return TerminalFailure(
            UpstreamTerminalError(
                message,
                code=extract_error_code(error),
                status_code=status_code,
                error=error,
            )
        )

    if not expect_json and "data" in envelope and data is None:
        return TerminalFailure(
            UpstreamTerminalError(
                "Label generation failed",
                status_code=status_code,
            )
        )

    if "data" in envelope:
        payload = data
    elif expect_json:
        payload = body
    else:
        payload = raw

    if error:
        return SuccessWithWarning(payload, warning=error)
    return Success(payload)
