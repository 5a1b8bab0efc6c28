from __future__ import annotations

import pytest

from catalogsync.domain.model import (
    CorrelationConflictError,
    ElementType,
    MetadataElement,
    SyncDirection,
)
from tests.helpers.catalog import ENDPOINT, at


def _element() -> MetadataElement:
    return MetadataElement(element_type=ElementType.CATALOG, qualified_name="catalog:main")


def test_add_correlation_links_owner() -> None:
    element = _element()

    record = element.add_correlation(
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.FROM_THIRD_PARTY,
        external_update_time=at(100),
        synchronized_at=at(200),
    )

    assert record.owner_id == element.id
    assert element.correlation_for(ENDPOINT) is record
    assert element.correlation_for("http://other") is None
    assert element.correlations == (record,)


def test_add_correlation_is_an_upsert_for_the_same_id() -> None:
    element = _element()
    first = element.add_correlation(
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.FROM_THIRD_PARTY,
        external_update_time=at(100),
        synchronized_at=at(200),
    )

    second = element.add_correlation(
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.TO_THIRD_PARTY,
        external_update_time=at(150),
        synchronized_at=at(300),
    )

    assert second is first
    assert len(element.correlations) == 1
    assert first.direction is SyncDirection.TO_THIRD_PARTY
    assert first.last_known_external_update == at(150)


def test_add_correlation_refuses_to_replace_a_different_id() -> None:
    element = _element()
    element.add_correlation(
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.FROM_THIRD_PARTY,
        external_update_time=None,
        synchronized_at=at(200),
    )

    with pytest.raises(CorrelationConflictError):
        element.add_correlation(
            external_id="uc-2",
            source=ENDPOINT,
            direction=SyncDirection.FROM_THIRD_PARTY,
            external_update_time=None,
            synchronized_at=at(300),
        )

    assert element.correlation_for(ENDPOINT) is not None
    assert element.correlation_for(ENDPOINT).external_id == "uc-1"  # type: ignore[union-attr]


def test_one_record_per_source() -> None:
    element = _element()
    for source in (ENDPOINT, "http://other"):
        element.add_correlation(
            external_id="uc-1",
            source=source,
            direction=SyncDirection.FROM_THIRD_PARTY,
            external_update_time=None,
            synchronized_at=at(200),
        )

    assert {record.source for record in element.correlations} == {ENDPOINT, "http://other"}


def test_confirm_keeps_watermark_when_remote_time_unknown() -> None:
    element = _element()
    element.add_correlation(
        external_id="uc-1",
        source=ENDPOINT,
        direction=SyncDirection.FROM_THIRD_PARTY,
        external_update_time=at(100),
        synchronized_at=at(200),
    )

    record = element.confirm_correlation(
        source=ENDPOINT, external_update_time=None, synchronized_at=at(300)
    )

    assert record.last_known_external_update == at(100)
    assert record.synchronized_at == at(300)


def test_relink_and_confirm_require_existing_record() -> None:
    element = _element()

    with pytest.raises(KeyError):
        element.relink_correlation(source=ENDPOINT, external_id="uc-9")
    with pytest.raises(KeyError):
        element.confirm_correlation(
            source=ENDPOINT, external_update_time=None, synchronized_at=at(1)
        )


def test_merge_properties_reports_change_and_keeps_unmentioned_keys() -> None:
    element = _element()
    element.properties = {"owner": "alice", "zone": "gold"}
    before = element.properties

    assert element.merge_properties({"owner": "bob"}) is True
    assert element.properties == {"owner": "bob", "zone": "gold"}
    assert element.properties is not before
    assert element.merge_properties({"owner": "bob"}) is False
