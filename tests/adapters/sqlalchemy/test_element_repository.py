from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import inspect, text

from catalogsync.adapters.sqlalchemy import SqlAlchemyElementRepository
from catalogsync.domain.model import ElementType, MetadataElement, SyncDirection
from tests.helpers.catalog import ENDPOINT

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_migrations_create_tables(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"metadata_element", "correlation_record", "alembic_version"} <= tables


def test_add_and_get_by_qualified_name(sqlite_session: Session) -> None:
    repository = SqlAlchemyElementRepository(sqlite_session)
    element = MetadataElement(
        element_type=ElementType.CATALOG,
        qualified_name="catalog:main",
        properties={"fullName": "main"},
        created_at=datetime(2025, 1, 1, 12, tzinfo=UTC),
    )
    repository.add(element)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repository.get_by_qualified_name("catalog:main")

    assert loaded is not None
    assert loaded.id == element.id
    assert loaded.properties == {"fullName": "main"}
    assert loaded.created_at == datetime(2025, 1, 1, 12, tzinfo=UTC)
    assert repository.get(element.id) is loaded
    assert repository.get_by_qualified_name("catalog:missing") is None


def test_enum_values_are_stored_by_name(sqlite_session: Session) -> None:
    repository = SqlAlchemyElementRepository(sqlite_session)
    repository.add(
        MetadataElement(element_type=ElementType.SOFTWARE_SERVER, qualified_name="server:uc")
    )
    sqlite_session.commit()

    stored = sqlite_session.execute(text("SELECT element_type FROM metadata_element")).scalar_one()

    assert stored == "SOFTWARE_SERVER"


def test_list_children_filters_orders_and_limits(sqlite_session: Session) -> None:
    repository = SqlAlchemyElementRepository(sqlite_session)
    parent = MetadataElement(element_type=ElementType.SCHEMA, qualified_name="schema:s")
    repository.add(parent)
    for name, element_type in (
        ("table:c", ElementType.TABLE),
        ("table:a", ElementType.TABLE),
        ("volume:v", ElementType.VOLUME),
        ("table:b", ElementType.TABLE),
    ):
        repository.add(
            MetadataElement(element_type=element_type, qualified_name=name, parent_id=parent.id)
        )
    sqlite_session.commit()

    tables = repository.list_children(parent.id, ElementType.TABLE)
    page = repository.list_children(parent.id, ElementType.TABLE, after="table:a", limit=1)
    everything = repository.list_children(parent.id)
    roots = repository.list_children(None)

    assert [element.qualified_name for element in tables] == ["table:a", "table:b", "table:c"]
    assert [element.qualified_name for element in page] == ["table:b"]
    assert len(everything) == 4
    assert [element.qualified_name for element in roots] == ["schema:s"]


def test_remove_deletes_correlations(sqlite_session: Session) -> None:
    repository = SqlAlchemyElementRepository(sqlite_session)
    element = MetadataElement(element_type=ElementType.CATALOG, qualified_name="catalog:main")
    element.add_correlation(
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.FROM_THIRD_PARTY,
        external_update_time=None,
        synchronized_at=datetime(2025, 1, 1, tzinfo=UTC),
    )
    repository.add(element)
    sqlite_session.commit()

    repository.remove(element)
    sqlite_session.commit()

    remaining = sqlite_session.execute(text("SELECT COUNT(*) FROM correlation_record")).scalar_one()
    assert remaining == 0
    assert repository.get(element.id) is None
