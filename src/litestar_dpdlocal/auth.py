"""DPD credential exchange (GeoSession login)."""

from __future__ import annotations

import logging

import httpx

from litestar_dpdlocal.config import DPDCredentials, DPDSettings
from litestar_dpdlocal.exceptions import AuthenticationError
from litestar_dpdlocal.outcome import extract_error_message, parse_json_body
from litestar_dpdlocal.session import Clock, Session, utcnow

logger = logging.getLogger(__name__)


class Authenticator:
    """Performs the single login call that yields a GeoSession.

    Does not retry and does not touch any store; the session lifetime is a
    fixed duration from issuance, never read from the response.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: DPDSettings,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.http_client = http_client
        self.settings = settings
        self.clock = clock or utcnow
        self.lifetime = settings.session_lifetime

    async def authenticate(self, credentials: DPDCredentials) -> Session:
        try:
            response = await self.http_client.post(
                self.settings.url_for(self.settings.auth_endpoint),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                auth=httpx.BasicAuth(
                    credentials.username, credentials.password
                ),
                timeout=self.settings.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise AuthenticationError(
                "Authentication request timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthenticationError(
                f"Authentication request failed: {exc}"
            ) from exc

        raw = response.text
        parsed, payload = parse_json_body(raw)
        if not parsed:
            if not response.is_success:
                raise AuthenticationError(
                    f"Authentication failed: {raw or response.reason_phrase}"
                )
            raise AuthenticationError("Invalid JSON response from DPD API")

        envelope = payload if isinstance(payload, dict) else {}
        error = envelope.get("error")

        if not response.is_success:
            raise AuthenticationError(
                extract_error_message(
                    error,
                    fallback=(
                        f"Authentication failed: {response.status_code} "
                        f"{response.reason_phrase}"
                    ),
                )
            )
        if error:
            raise AuthenticationError(
                extract_error_message(error, fallback="Authentication failed")
            )

        data = envelope.get("data")
        token = data.get("geoSession") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("No GeoSession token received from DPD")

        expires_at = self.clock() + self.lifetime
        logger.info("Obtained DPD session valid until %s", expires_at)
        return Session(token=str(token), expires_at=expires_at)
