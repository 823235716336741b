"""Tests du QueryAdapter (délégation au backend, propagation des erreurs)."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.backend import BackendKind
from app.infrastructure.data.adapter import QueryAdapter
from app.infrastructure.data.exceptions import DatabaseConnectionError
from app.infrastructure.data.query import QueryOptions, QueryResult
from app.infrastructure.data.tables import Table


@pytest.fixture
def backend():
    backend = MagicMock(kind=BackendKind.SUPABASE)
    for method in ("query", "count", "find_by_id", "insert", "update", "delete", "search", "call_procedure"):
        setattr(backend, method, AsyncMock())
    return backend


@pytest.mark.asyncio
class TestQueryAdapter:
    async def test_kind_is_the_backend_kind(self, backend):
        assert QueryAdapter(backend).kind is BackendKind.SUPABASE

    async def test_query_defaults_to_empty_options(self, backend):
        backend.query.return_value = QueryResult(rows=[{"id": 1}], count=1)

        result = await QueryAdapter(backend).query(Table.MEDICOS)

        backend.query.assert_awaited_once_with(Table.MEDICOS, QueryOptions())
        assert result.count == 1

    async def test_arguments_are_forwarded(self, backend):
        adapter = QueryAdapter(backend)

        await adapter.update(Table.PACIENTES, 3, {"edad": 40})
        await adapter.search(Table.PACIENTES, "ana", ["nombres"], order_by="id", ascending=True)

        backend.update.assert_awaited_once_with(Table.PACIENTES, 3, {"edad": 40}, "id")
        backend.search.assert_awaited_once_with(Table.PACIENTES, "ana", ["nombres"], "id", True)

    async def test_errors_propagate_unchanged_without_retry(self, backend):
        error = DatabaseConnectionError("connection refused")
        backend.find_by_id.side_effect = error

        with pytest.raises(DatabaseConnectionError) as exc_info:
            await QueryAdapter(backend).find_by_id(Table.MEDICOS, 1)

        assert exc_info.value is error
        assert backend.find_by_id.await_count == 1
