"""DPD authentication status endpoints."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, get, post
from litestar.params import Dependency

from litestar_dpdlocal import service
from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.schemas import AuthStatus, ConnectionTestResult


class AuthController(Controller):
    path = "/auth"
    tags: ClassVar[list[str]] = ["auth"]

    @get("/status")
    async def status(
        self,
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
    ) -> AuthStatus:
        """Whether a usable GeoSession can be obtained."""
        return await service.get_auth_status(client)

    @post("/test", status_code=200)
    async def test(
        self,
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
    ) -> ConnectionTestResult:
        """Log in once with the configured credentials."""
        return await service.test_connection(client)
