from __future__ import annotations

import pytest

from catalogsync.domain.reconciliation import NameFilter


def test_empty_filter_catalogues_everything() -> None:
    name_filter = NameFilter()

    assert name_filter("anything")
    assert name_filter.catalogues_path("main.sales.orders")


def test_include_wins_over_exclude() -> None:
    name_filter = NameFilter.from_lists(include=["main"], exclude=["main"])

    assert name_filter("main")
    assert not name_filter("other")


def test_exclude_without_include() -> None:
    name_filter = NameFilter.from_lists(exclude=["scratch"])

    assert not name_filter("scratch")
    assert name_filter("main")


@pytest.mark.parametrize(
    ("full_name", "expected"),
    [
        ("main", True),
        ("main.sales", True),
        ("main.sales.orders", True),
        ("main.hr", False),
        ("other", False),
    ],
)
def test_include_applies_to_prefixes(full_name: str, expected: bool) -> None:
    name_filter = NameFilter.from_lists(include=["main.sales"])

    assert name_filter.catalogues_path(full_name) is expected


def test_exclude_drops_a_subtree() -> None:
    name_filter = NameFilter.from_lists(exclude=["main.tmp"])

    assert name_filter.catalogues_path("main")
    assert not name_filter.catalogues_path("main.tmp")
    assert not name_filter.catalogues_path("main.tmp.scratch")
    assert name_filter.catalogues_path("main.tmpfiles")
