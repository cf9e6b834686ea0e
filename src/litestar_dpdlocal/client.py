"""DPD API client bound to one credential set."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import httpx

from litestar_dpdlocal.auth import Authenticator
from litestar_dpdlocal.config import DPDCredentials, DPDSettings
from litestar_dpdlocal.pipeline import RequestDescriptor, RequestPipeline
from litestar_dpdlocal.protocols import SessionStore
from litestar_dpdlocal.retry import RetryPolicy, Sleep
from litestar_dpdlocal.session import Clock, SessionManager


class DPDClient:
    """Wires authenticator, session manager and pipeline together.

    Args:
        credentials: DPD account credentials used for every call.
        settings: Endpoints, timeouts and retry settings.
        session_store: Where the GeoSession is kept. In-memory if omitted.
        http_client: Shared httpx client. Created (and owned) if omitted.
        sleep: Backoff sleep, mainly for tests.
        clock: Source of "now" for session expiry.
    """

    def __init__(
        self,
        credentials: DPDCredentials,
        settings: DPDSettings | None = None,
        *,
        session_store: SessionStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.credentials = credentials
        self.settings = settings or DPDSettings()
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=self.settings.timeout_seconds
        )
        sleep = sleep or asyncio.sleep

        self.authenticator = Authenticator(
            self.http_client, self.settings, clock=clock
        )
        self.sessions = SessionManager(
            self.authenticator,
            session_store,
            retry_policy=RetryPolicy(
                max_attempts=self.settings.session_max_retries,
                base_delay=self.settings.session_retry_delay_seconds,
                sleep=sleep,
            ),
            clock=clock,
        )
        self.pipeline = RequestPipeline(
            self.sessions,
            self.http_client,
            self.settings,
            retry_policy=RetryPolicy(
                max_attempts=self.settings.retry_attempts,
                base_delay=self.settings.retry_delay_seconds,
                sleep=sleep,
            ),
        )

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        retry: bool = True,
        retry_attempts: int | None = None,
    ) -> Any:
        """Authenticated DPD call; returns the response payload."""
        return await self.pipeline.call(
            self.credentials,
            RequestDescriptor(
                method=method,
                endpoint=endpoint,
                body=body,
                headers=dict(headers or {}),
                retryable=retry,
                max_attempts=retry_attempts,
            ),
        )

    async def get_session_token(
        self,
        force_refresh: bool = False,
        *,
        max_attempts: int | None = None,
    ) -> str:
        return await self.sessions.get_valid_session(
            self.credentials,
            force_refresh=force_refresh,
            max_attempts=max_attempts,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> DPDClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
