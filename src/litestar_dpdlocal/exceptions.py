"""Exception taxonomy and HTTP mapping for litestar-dpdlocal."""

from __future__ import annotations

from typing import Any

from litestar import Request, Response


class DPDError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(DPDError):
    """A required component is not configured."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TransportError(DPDError):
    """Network failure or timeout while talking to an upstream API."""


class AuthenticationError(DPDError):
    """The credential-exchange call failed outright."""


class AuthExpiredError(DPDError):
    """The upstream rejected the session token (HTTP 401)."""

    def __init__(self, message: str, *, status_code: int = 401) -> None:
        self.status_code = status_code
        super().__init__(message)


class UpstreamTerminalError(DPDError):
    """DPD answered with an error that retrying will not fix."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN",
        status_code: int | None = None,
        error: Any = None,
    ) -> None:
        self.code = code
        self.status_code = status_code
        self.error = error
        super().__init__(message)


class MalformedResponseError(DPDError):
    """Response body could not be parsed although JSON was expected."""

    def __init__(self, message: str, *, body: str = "") -> None:
        self.body = body
        super().__init__(message)


class SessionAcquisitionError(DPDError):
    """Every authentication attempt failed."""

    def __init__(
        self,
        attempts: int,
        last_error: Exception | None,
        errors: list[Exception] | None = None,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.errors = list(errors or [])
        reason = str(last_error) if last_error is not None else "Unknown error"
        super().__init__(
            f"Failed to authenticate after {attempts} attempts: {reason}"
        )


class IncompleteResponseError(UpstreamTerminalError):
    """Shipment was accepted but the response lacks required fields."""

    def __init__(self, missing_field: str) -> None:
        self.missing_field = missing_field
        super().__init__(
            f"Missing required data: {missing_field}",
            code="INCOMPLETE_RESPONSE",
        )


class LabelGenerationError(DPDError):
    """No usable label data was returned."""


class AddressLookupError(DPDError):
    """The postcode lookup service failed."""


class OrderUpdateError(DPDError):
    """Shipment exists upstream but the order could not be updated."""


class EncryptionError(DPDError):
    """Stored credentials could not be decrypted."""


def _error_response(
    request: Request, detail: str, code: str, status_code: int
) -> Response:
    return Response(
        content={"detail": detail, "code": code},
        status_code=status_code,
    )


def handle_transport_error(
    request: Request, exc: TransportError
) -> Response:
    """Map TransportError to 502."""
    return _error_response(request, str(exc), "communication_error", 502)


def handle_authentication_error(
    request: Request, exc: AuthenticationError | SessionAcquisitionError
) -> Response:
    """Map authentication failures to 502."""
    return _error_response(request, str(exc), "authentication_error", 502)


def handle_upstream_error(
    request: Request, exc: UpstreamTerminalError
) -> Response:
    """Map UpstreamTerminalError to 502."""
    return _error_response(request, str(exc), "upstream_error", 502)


def handle_malformed_response(
    request: Request, exc: MalformedResponseError
) -> Response:
    """Map MalformedResponseError to 502."""
    return _error_response(request, str(exc), "malformed_response", 502)


def handle_address_lookup_error(
    request: Request, exc: AddressLookupError
) -> Response:
    """Map AddressLookupError to 502."""
    return _error_response(request, str(exc), "address_lookup_error", 502)


def handle_configuration_error(
    request: Request, exc: ConfigurationError
) -> Response:
    """Map ConfigurationError to 500."""
    return _error_response(request, str(exc), "configuration_error", 500)


def handle_dpd_error(request: Request, exc: DPDError) -> Response:
    """Map generic DPDError to 400."""
    return _error_response(request, str(exc), "dpd_error", 400)


EXCEPTION_HANDLERS = {
    TransportError: handle_transport_error,
    AuthenticationError: handle_authentication_error,
    SessionAcquisitionError: handle_authentication_error,
    UpstreamTerminalError: handle_upstream_error,
    MalformedResponseError: handle_malformed_response,
    AddressLookupError: handle_address_lookup_error,
    ConfigurationError: handle_configuration_error,
    DPDError: handle_dpd_error,
}
