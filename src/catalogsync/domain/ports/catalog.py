"""Port for the third-party catalog the engine reconciles against."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from catalogsync.domain.model import EntityKind, ExternalEntity


class RemoteCatalogError(RuntimeError):
    """Base class for failures reported by a remote catalog."""


class RemoteEntityNotFound(RemoteCatalogError):  # noqa: N818
    """The requested entity does not exist in the remote catalog."""

    def __init__(self, kind: EntityKind, full_name: str) -> None:
        super().__init__(f"{kind.value} {full_name!r} not found")
        self.kind = kind
        self.full_name = full_name


class RemoteServiceError(RemoteCatalogError):
    """The remote catalog could not serve a request (transport or server error)."""


@runtime_checkable
class RemoteCatalog(Protocol):
    """Synchronous request/response access to a hierarchical asset catalog.

    ``parent_name`` is the dotted full name of the container to list under;
    catalogs are listed with ``None``.
    """

    @property
    def endpoint(self) -> str: ...

    def list_entities(self, kind: EntityKind, parent_name: str | None) -> list[ExternalEntity]: ...

    def get_entity(self, kind: EntityKind, full_name: str) -> ExternalEntity: ...

    def create_entity(self, entity: ExternalEntity) -> ExternalEntity: ...

    def updatable_fields(self, kind: EntityKind) -> frozenset[str]:
        """Names of the ``ExternalEntity`` fields ``update_entity`` can change for ``kind``."""
        ...

    def update_entity(self, entity: ExternalEntity) -> ExternalEntity: ...

    def delete_entity(self, kind: EntityKind, full_name: str) -> None: ...
