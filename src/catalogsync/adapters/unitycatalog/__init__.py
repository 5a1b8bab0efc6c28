"""Unity Catalog adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catalogsync.config.unitycatalog import get_unity_catalog_config

from .catalog import UnityCatalogRemote
from .client import UnityCatalogClient

if TYPE_CHECKING:
    from catalogsync.config.unitycatalog import UnityCatalogConfig


def build_unity_catalog_remote(
    *,
    config: UnityCatalogConfig | None = None,
    endpoint: str | None = None,
) -> UnityCatalogRemote:
    """Return a remote catalog bound to the configured Unity Catalog server."""

    effective = config or get_unity_catalog_config(endpoint=endpoint)
    return UnityCatalogRemote(UnityCatalogClient(config=effective))


__all__ = ["UnityCatalogClient", "UnityCatalogRemote", "build_unity_catalog_remote"]
