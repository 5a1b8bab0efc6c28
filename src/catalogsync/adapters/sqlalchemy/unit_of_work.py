"""SQLAlchemy-backed unit of work for the metadata graph."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.adapters.sqlalchemy.mappings import start_mappers
from catalogsync.adapters.sqlalchemy.migrations import upgrade_head
from catalogsync.adapters.sqlalchemy.repositories import SqlAlchemyElementRepository
from catalogsync.config.storage import get_database_uri
from catalogsync.domain.ports.unit_of_work import MetadataRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the metadata store is used before ``startup()`` or twice configured."""


class _StoreState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


_STATE = _StoreState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the metadata store: map the model, migrate the schema, prepare sessions."""

    if _STATE.engine is not None and not force:
        raise StartupError("Metadata store already initialised. Pass force=True to reconfigure.")

    resolved = engine or create_engine(database_uri or get_database_uri(), future=True)
    if resolved.dialect.name == "sqlite":
        # Element deletes cascade to members and correlation records in the database too.
        event.listen(resolved, "connect", _enable_sqlite_foreign_keys)
    start_mappers()
    upgrade_head(engine=resolved)

    _STATE.engine = resolved
    _STATE.sessions = sessionmaker(bind=resolved, expire_on_commit=False)
    log.info(f"Metadata store ready at {resolved.url!r}")


def _enable_sqlite_foreign_keys(dbapi_connection: object, connection_record: object) -> None:
    _ = connection_record
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the engine and forget the session factory."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.sessions = None


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block; nothing is written without ``commit()``.

    Leaving the block because of an exception rolls the session back.
    """

    def __init__(self) -> None:
        if _STATE.sessions is None:
            raise StartupError(
                "Metadata store not initialised. Call catalogsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self._sessions = _STATE.sessions
        self._session: Session | None = None
        self._repositories: MetadataRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already open")
        self._session = self._sessions()
        self._repositories = MetadataRepositories(
            elements=SqlAlchemyElementRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not open")
        return self._session

    @property
    def repositories(self) -> MetadataRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from catalogsync.domain.ports.unit_of_work import MetadataUnitOfWork

    _uow_check: MetadataUnitOfWork = SqlAlchemyUnitOfWork()
