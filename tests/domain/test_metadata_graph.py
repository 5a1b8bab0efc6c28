from __future__ import annotations

import uuid

import pytest

from catalogsync.domain.metadata_graph import (
    DuplicateQualifiedNameError,
    ElementNotFoundError,
    MetadataGraph,
    substitute_placeholders,
)
from catalogsync.domain.model import ChangeEvent, ChangeEventType, ElementType, SyncDirection
from tests.helpers.catalog import ENDPOINT, at


def test_create_and_read_back(sqlite_graph: MetadataGraph) -> None:
    server = sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.SOFTWARE_SERVER,
        qualified_name="server:uc",
        properties={"endpoint": ENDPOINT},
    )
    catalog = sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.CATALOG,
        qualified_name="catalog:main",
        description="Main",
        properties={"tags": ["a", "b"], "nested": {"level": 1}},
        parent_id=server.id,
    )

    loaded = sqlite_graph.get_element(catalog.id)

    assert loaded is not None
    assert loaded.parent_id == server.id
    assert loaded.element_type is ElementType.CATALOG
    assert loaded.properties == {"tags": ["a", "b"], "nested": {"level": 1}}
    assert loaded.created_by == "tester"
    assert loaded.created_at is not None
    assert sqlite_graph.find_by_qualified_name("catalog:main") is not None


def test_duplicate_qualified_name_is_rejected(sqlite_graph: MetadataGraph) -> None:
    sqlite_graph.create_element(
        user_id="tester", element_type=ElementType.CATALOG, qualified_name="catalog:main"
    )

    with pytest.raises(DuplicateQualifiedNameError):
        sqlite_graph.create_element(
            user_id="tester", element_type=ElementType.CATALOG, qualified_name="catalog:main"
        )


def test_missing_parent_is_rejected(sqlite_graph: MetadataGraph) -> None:
    with pytest.raises(ElementNotFoundError):
        sqlite_graph.create_element(
            user_id="tester",
            element_type=ElementType.SCHEMA,
            qualified_name="schema:main.sales",
            parent_id=uuid.uuid4(),
        )


def test_update_merges_or_replaces_properties(sqlite_graph: MetadataGraph) -> None:
    element = sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.CATALOG,
        qualified_name="catalog:main",
        properties={"owner": "alice", "zone": "gold"},
    )

    merged = sqlite_graph.update_element(
        element.id, user_id="bob", properties={"owner": "bob"}, description="Main"
    )
    assert merged.properties == {"owner": "bob", "zone": "gold"}
    assert merged.updated_by == "bob"
    assert merged.updated_at is not None

    replaced = sqlite_graph.update_element(
        element.id, user_id="bob", properties={"owner": "carol"}, merge=False
    )
    assert replaced.properties == {"owner": "carol"}

    loaded = sqlite_graph.get_element(element.id)
    assert loaded is not None
    assert loaded.properties == {"owner": "carol"}
    assert loaded.description == "Main"


def test_update_of_unknown_element_raises(sqlite_graph: MetadataGraph) -> None:
    with pytest.raises(ElementNotFoundError):
        sqlite_graph.update_element(uuid.uuid4(), user_id="tester", description="x")


def test_delete_removes_subtree_and_correlations(sqlite_graph: MetadataGraph) -> None:
    table = sqlite_graph.create_element(
        user_id="tester", element_type=ElementType.TABLE, qualified_name="table:t"
    )
    root = sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.SCHEMA_TYPE,
        qualified_name="table:t::root_schema_type",
        parent_id=table.id,
    )
    sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.SCHEMA_ATTRIBUTE,
        qualified_name="table:t::column::id",
        parent_id=root.id,
    )
    sqlite_graph.add_external_identifier(
        table.id, user_id="tester", external_id="uc-1", source=ENDPOINT
    )

    sqlite_graph.delete_element(table.id, user_id="tester")

    for name in ("table:t", "table:t::root_schema_type", "table:t::column::id"):
        assert sqlite_graph.find_by_qualified_name(name) is None


def test_nested_changes_touch_the_owning_table(sqlite_graph: MetadataGraph) -> None:
    table = sqlite_graph.create_element(
        user_id="tester", element_type=ElementType.TABLE, qualified_name="table:t"
    )
    root = sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.SCHEMA_TYPE,
        qualified_name="table:t::root_schema_type",
        parent_id=table.id,
    )
    column = sqlite_graph.create_element(
        user_id="tester",
        element_type=ElementType.SCHEMA_ATTRIBUTE,
        qualified_name="table:t::column::id",
        parent_id=root.id,
    )
    created = sqlite_graph.get_element(table.id)
    assert created is not None
    assert created.updated_at is not None

    sqlite_graph.update_element(column.id, user_id="alice", description="Key")

    edited = sqlite_graph.get_element(table.id)
    assert edited is not None
    assert edited.updated_by == "alice"
    assert edited.updated_at is not None
    assert edited.updated_at > created.updated_at

    sqlite_graph.delete_element(column.id, user_id="bob")

    pruned = sqlite_graph.get_element(table.id)
    assert pruned is not None
    assert pruned.updated_by == "bob"
    root_after = sqlite_graph.get_element(root.id)
    assert root_after is not None
    assert root_after.updated_at is None

def test_correlations_round_trip(sqlite_graph: MetadataGraph) -> None:
    element = sqlite_graph.create_element(
        user_id="tester", element_type=ElementType.CATALOG, qualified_name="catalog:main"
    )

    sqlite_graph.add_external_identifier(
        element.id,
        user_id="tester",
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.TO_THIRD_PARTY,
        external_update_time=at(100),
    )
    sqlite_graph.confirm_synchronization(
        element.id, user_id="tester", source=ENDPOINT, external_update_time=at(150)
    )
    sqlite_graph.update_external_identifier(
        element.id, user_id="tester", source=ENDPOINT, external_id="uc-2"
    )

    loaded = sqlite_graph.get_element(element.id)
    assert loaded is not None
    record = loaded.correlation_for(ENDPOINT)
    assert record is not None
    assert record.external_id == "uc-2"
    assert record.direction is SyncDirection.TO_THIRD_PARTY
    assert record.last_known_external_update == at(150)
    assert record.synchronized_at is not None
    assert record.synchronized_at.tzinfo is not None


def test_page_members_orders_and_pages(sqlite_graph: MetadataGraph) -> None:
    parent = sqlite_graph.create_element(
        user_id="tester", element_type=ElementType.CATALOG, qualified_name="catalog:main"
    )
    for name in ("schema:c", "schema:a", "schema:b"):
        sqlite_graph.create_element(
            user_id="tester",
            element_type=ElementType.SCHEMA,
            qualified_name=name,
            parent_id=parent.id,
        )

    first = sqlite_graph.page_members(parent.id, ElementType.SCHEMA, limit=2)
    rest = sqlite_graph.page_members(
        parent.id, ElementType.SCHEMA, after=first[-1].qualified_name, limit=2
    )

    assert [element.qualified_name for element in first] == ["schema:a", "schema:b"]
    assert [element.qualified_name for element in rest] == ["schema:c"]
    assert sqlite_graph.page_members(parent.id, ElementType.TABLE) == []


def test_create_from_template_substitutes_placeholders(graph: MetadataGraph) -> None:
    graph.create_element(
        user_id="tester",
        element_type=ElementType.TABLE,
        qualified_name="template:table",
        description="Template description",
        properties={"team": "~{parentName}~-team", "zone": "~{zone}~", "keep": "~{unknown}~"},
    )

    created = graph.create_from_template(
        user_id="tester",
        template_qualified_name="template:table",
        qualified_name="table:main.sales.orders",
        placeholders={"parentName": "main.sales", "zone": "gold"},
        properties={"name": "orders"},
    )

    assert created.element_type is ElementType.TABLE
    assert created.description == "Template description"
    assert created.properties == {
        "team": "main.sales-team",
        "zone": "gold",
        "keep": "~{unknown}~",
        "name": "orders",
    }


def test_create_from_missing_template_raises(graph: MetadataGraph) -> None:
    with pytest.raises(ElementNotFoundError):
        graph.create_from_template(
            user_id="tester",
            template_qualified_name="template:missing",
            qualified_name="table:x",
        )


def test_substitute_placeholders_recurses() -> None:
    value = {"a": ["~{x}~", 1], "b": {"c": "pre-~{x}~"}}

    assert substitute_placeholders(value, {"x": "1"}) == {"a": ["1", 1], "b": {"c": "pre-1"}}


def test_listeners_receive_change_events(graph: MetadataGraph) -> None:
    events: list[ChangeEvent] = []
    graph.subscribe(events.append)

    element = graph.create_element(
        user_id="alice", element_type=ElementType.CATALOG, qualified_name="catalog:main"
    )
    graph.update_element(element.id, user_id="bob", description="Main")
    graph.delete_element(element.id, user_id="carol")

    assert [event.event_type for event in events] == [
        ChangeEventType.CREATED,
        ChangeEventType.UPDATED,
        ChangeEventType.DELETED,
    ]
    assert [event.updated_by for event in events] == ["alice", "bob", "carol"]
    assert all(event.element_id == element.id for event in events)
    assert events[0].update_time is not None
    assert events[0].update_time < events[1].update_time  # type: ignore[operator]
