"""Authenticated request pipeline with classification and retry."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from litestar_dpdlocal.config import DPDCredentials, DPDSettings
from litestar_dpdlocal.exceptions import TransportError
from litestar_dpdlocal.labels import is_label_request
from litestar_dpdlocal.outcome import (
    FailureKind,
    Outcome,
    RecoverableFailure,
    Success,
    SuccessWithWarning,
    TerminalFailure,
    classify_response,
)
from litestar_dpdlocal.retry import RetryPolicy
from litestar_dpdlocal.session import SessionManager

logger = logging.getLogger(__name__)

SESSION_HEADER = "GeoSession"


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical DPD call.

    ``max_attempts`` of None uses the pipeline's retry policy. A request
    with ``retryable=False`` is attempted exactly once.
    """

    method: str
    endpoint: str
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    retryable: bool = True
    max_attempts: int | None = None


class RequestPipeline:
    """Wraps DPD calls with session injection, classification and retry."""

    def __init__(
        self,
        session_manager: SessionManager,
        http_client: httpx.AsyncClient,
        settings: DPDSettings,
        *,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.session_manager = session_manager
        self.http_client = http_client
        self.settings = settings
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.retry_attempts,
            base_delay=settings.retry_delay_seconds,
        )

    async def call(
        self, credentials: DPDCredentials, request: RequestDescriptor
    ) -> Any:
        """Perform ``request`` and return its payload.

        Auth-expired and transport failures are retried with a fresh
        session; anything else is raised as soon as it is seen.
        """
        policy = self.retry_policy
        if request.max_attempts is not None:
            policy = policy.with_max_attempts(request.max_attempts)
        max_attempts = policy.max_attempts if request.retryable else 1

        for attempt in range(max_attempts):
            token = await self.session_manager.get_valid_session(
                credentials, force_refresh=attempt > 0
            )
            outcome = await self._dispatch(token, request)

            if isinstance(outcome, Success):
                return outcome.payload
            if isinstance(outcome, SuccessWithWarning):
                logger.warning(
                    "DPD %s %s returned data with a warning: %s",
                    request.method,
                    request.endpoint,
                    json.dumps(outcome.warning, default=str),
                )
                return outcome.payload
            if isinstance(outcome, TerminalFailure):
                logger.error(
                    "DPD %s %s failed: %s",
                    request.method,
                    request.endpoint,
                    outcome.error,
                )
                raise outcome.error

            if outcome.kind is FailureKind.AUTH_EXPIRED:
                await self.session_manager.clear()
            if attempt + 1 >= max_attempts:
                raise outcome.error
            delay = policy.delay_for(attempt + 1)
            logger.info(
                "DPD %s %s attempt %d/%d failed (%s), retrying in %.1fs",
                request.method,
                request.endpoint,
                attempt + 1,
                max_attempts,
                outcome.kind,
                delay,
            )
            await policy.sleep(delay)

    async def _dispatch(
        self, token: str, request: RequestDescriptor
    ) -> Outcome:
        headers = {
            "Content-Type": "application/json",
            SESSION_HEADER: token,
            **request.headers,
        }
        url = self.settings.url_for(request.endpoint)
        try:
            response = await self.http_client.request(
                request.method,
                url,
                headers=headers,
                json=request.body,
                timeout=self.settings.timeout_seconds,
            )
        except httpx.TimeoutException:
            return RecoverableFailure(
                FailureKind.TRANSIENT,
                TransportError(
                    "DPD request timed out: "
                    f"{request.method} {request.endpoint}"
                ),
            )
        except httpx.HTTPError as exc:
            return RecoverableFailure(
                FailureKind.TRANSIENT,
                TransportError(f"DPD request failed: {exc}"),
            )

        return classify_response(
            response.status_code,
            response.reason_phrase,
            response.text,
            expect_json=not is_label_request(headers),
        )
