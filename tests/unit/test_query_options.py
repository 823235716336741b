"""Tests des objets de requête partagés par les deux backends."""

import pytest
from pydantic import ValidationError

from app.infrastructure.data.query import (
    OrderBy,
    PaginationInfo,
    QueryOptions,
    ValueRange,
    active_filters,
    active_ranges,
    is_empty_filter,
)


class TestEmptyFilters:
    @pytest.mark.parametrize("value", [None, "", [], (), set()])
    def test_empty_values_are_ignored(self, value):
        assert is_empty_filter(value)

    @pytest.mark.parametrize("value", [0, False, "0", [None], " "])
    def test_falsy_but_meaningful_values_are_kept(self, value):
        assert not is_empty_filter(value)

    def test_active_filters_keeps_mapping_order_and_listifies_collections(self):
        filters = {"estado_remision": ("Pendiente", "Aceptada"), "clinica_alias": "", "activo": False}

        assert list(active_filters(filters)) == [
            ("estado_remision", ["Pendiente", "Aceptada"]),
            ("activo", False),
        ]

    def test_active_filters_accepts_none(self):
        assert list(active_filters(None)) == []

    def test_active_ranges_skips_unbounded(self):
        ranges = {"edad": ValueRange(gte=18), "fecha_creacion": ValueRange()}
        assert [name for name, _ in active_ranges(ranges)] == ["edad"]


class TestQueryOptions:
    def test_defaults(self):
        options = QueryOptions()
        assert options.filters == {}
        assert options.limit is None
        assert options.offset == 0

    def test_offset_requires_limit(self):
        with pytest.raises(ValidationError, match="offset requires limit"):
            QueryOptions(offset=10)

    def test_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            QueryOptions(limit=0)

    def test_order_by_defaults_to_ascending(self):
        assert OrderBy(column="nombres").ascending is True


class TestPagination:
    @pytest.mark.parametrize(
        ("total", "limit", "pages"),
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5)],
    )
    def test_pages_is_ceiling(self, total, limit, pages):
        assert PaginationInfo.build(page=1, limit=limit, total=total).pages == pages
