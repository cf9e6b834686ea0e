"""Litestar integration for the DPD Local shipping API."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DPDClient",
    "DPDCredentials",
    "DPDError",
    "DPDModuleConfig",
    "DPDSettings",
    "DatabaseAdapter",
    "SessionStore",
    "StorageAdapter",
    "__version__",
    "create_dpd_router",
]

if TYPE_CHECKING:
    from litestar_dpdlocal.client import DPDClient
    from litestar_dpdlocal.config import (
        DPDCredentials,
        DPDModuleConfig,
        DPDSettings,
    )
    from litestar_dpdlocal.exceptions import ConfigurationError, DPDError
    from litestar_dpdlocal.plugin import create_dpd_router
    from litestar_dpdlocal.protocols import (
        DatabaseAdapter,
        SessionStore,
        StorageAdapter,
    )


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    if name == "DPDClient":
        from litestar_dpdlocal.client import DPDClient

        return DPDClient
    if name == "create_dpd_router":
        from litestar_dpdlocal.plugin import create_dpd_router

        return create_dpd_router
    if name in ("DPDCredentials", "DPDModuleConfig", "DPDSettings"):
        from litestar_dpdlocal import config

        return getattr(config, name)
    if name in ("ConfigurationError", "DPDError"):
        from litestar_dpdlocal import exceptions

        return getattr(exceptions, name)
    if name in ("DatabaseAdapter", "SessionStore", "StorageAdapter"):
        from litestar_dpdlocal import protocols

        return getattr(protocols, name)
    raise AttributeError(
        f"module 'litestar_dpdlocal' has no attribute {name!r}"
    )
