"""Address validation and saved-address endpoints."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, get, post
from litestar.params import Dependency

from litestar_dpdlocal import service
from litestar_dpdlocal.client import DPDClient
from litestar_dpdlocal.exceptions import ConfigurationError
from litestar_dpdlocal.protocols import DatabaseAdapter
from litestar_dpdlocal.schemas import (
    Address,
    AddressValidationResult,
    SaveAddressRequest,
    SavedAddress,
    ValidateAddressRequest,
)


class AddressController(Controller):
    path = "/addresses"
    tags: ClassVar[list[str]] = ["addresses"]

    @post("/validate", status_code=200)
    async def validate(
        self,
        data: ValidateAddressRequest,
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
    ) -> AddressValidationResult:
        """Check a postcode and whether DPD delivers there."""
        return await service.validate_delivery_address(
            client, data.postcode, data.town
        )

    @post("/")
    async def save(
        self,
        data: SaveAddressRequest,
        client: Annotated[DPDClient, Dependency(skip_validation=True)],
        database: Annotated[
            DatabaseAdapter | None, Dependency(skip_validation=True)
        ] = None,
    ) -> dict[str, str]:
        if database is None:
            raise ConfigurationError("Database adapter not configured")
        address = Address.model_validate(
            data.model_dump(exclude={"user_id", "label", "is_default"})
        )
        address_id = await service.save_address(
            client,
            database,
            data.user_id,
            address,
            label=data.label,
            is_default=data.is_default,
        )
        return {"id": address_id}

    @get("/{user_id:str}")
    async def list_for_user(
        self,
        user_id: str,
        database: Annotated[
            DatabaseAdapter | None, Dependency(skip_validation=True)
        ] = None,
    ) -> list[SavedAddress]:
        if database is None:
            raise ConfigurationError("Database adapter not configured")
        return await service.get_saved_addresses(user_id, database)
