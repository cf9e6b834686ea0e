"""Storage protocols supplied by the host application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from litestar_dpdlocal.oplog import OperationLog
    from litestar_dpdlocal.schemas import SavedAddress
    from litestar_dpdlocal.session import Session

__all__ = [
    "DatabaseAdapter",
    "SessionStore",
    "StorageAdapter",
]


@runtime_checkable
class SessionStore(Protocol):
    """Storage for the current GeoSession of one credential set.

    ``save`` is a whole-object overwrite (last write wins). Durable
    implementations must make ``save`` and ``clear`` atomic.
    """

    async def load(self) -> Session | None:
        """Return the stored session, or None."""
        ...

    async def save(self, session: Session) -> None:
        """Replace the stored session."""
        ...

    async def clear(self) -> None:
        """Remove the stored session."""
        ...


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Persistence for orders, saved addresses and DPD operation logs."""

    async def get_order(self, order_id: str) -> Any:
        ...

    async def update_order(self, order_id: str, data: dict[str, Any]) -> None:
        ...

    async def get_saved_addresses(self, user_id: str) -> list[SavedAddress]:
        ...

    async def get_saved_address(self, address_id: str) -> SavedAddress | None:
        ...

    async def create_saved_address(self, address: SavedAddress) -> str:
        """Persist a new address. Returns its ID."""
        ...

    async def update_saved_address(
        self, address_id: str, data: dict[str, Any]
    ) -> None:
        ...

    async def delete_saved_address(self, address_id: str) -> None:
        ...

    async def create_dpd_log(self, log: OperationLog) -> str:
        """Persist an operation log record. Returns its ID."""
        ...


@runtime_checkable
class StorageAdapter(Protocol):
    """Storage for generated label files."""

    async def upload_label(self, label_data: str, file_name: str) -> str:
        """Store label data. Returns a URL for it."""
        ...

    async def get_label(self, file_name: str) -> str:
        ...

    async def delete_label(self, file_name: str) -> None:
        ...
