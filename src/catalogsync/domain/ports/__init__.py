"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import (
    RemoteCatalog,
    RemoteCatalogError,
    RemoteEntityNotFound,
    RemoteServiceError,
)
from .persistence import ElementRepository, Repository
from .unit_of_work import (
    MetadataRepositories,
    MetadataUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ElementRepository",
    "MetadataRepositories",
    "MetadataUnitOfWork",
    "RemoteCatalog",
    "RemoteCatalogError",
    "RemoteEntityNotFound",
    "RemoteServiceError",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
