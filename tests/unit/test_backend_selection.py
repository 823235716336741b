"""Tests du choix de backend figé au build et de la construction des backends."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.backend import ACTIVE_BACKEND, BackendKind, describe_backend
from app.core.config import Settings
from app.core.database_config import USE_POSTGRES
from app.infrastructure.data.exceptions import DatabaseConnectionError
from app.infrastructure.data.factory import create_query_backend, wait_for_database
from app.infrastructure.data.postgres_backend import PostgresQueryBackend
from app.infrastructure.data.supabase_backend import SupabaseQueryBackend
from app.repositories.patient import PatientRepository, PatientRepositoryPostgres, PatientRepositorySupabase
from app.repositories.registry import DataContext
from scripts.generate_db_config import main, render, resolve_backend


class TestActiveBackend:
    def test_active_backend_follows_generated_flag(self):
        assert ACTIVE_BACKEND is (BackendKind.POSTGRES if USE_POSTGRES else BackendKind.SUPABASE)

    def test_repository_alias_matches_active_backend(self):
        expected = PatientRepositoryPostgres if USE_POSTGRES else PatientRepositorySupabase
        assert PatientRepository is expected

    def test_describe_backend(self):
        assert describe_backend(BackendKind.SUPABASE) == {
            "type": "supabase",
            "label": "Supabase",
            "raw_sql": False,
            "build_time": True,
        }
        assert BackendKind.POSTGRES.supports_raw_sql


class TestGenerateDbConfig:
    @pytest.mark.parametrize(
        ("explicit", "environ", "expected"),
        [
            (None, {}, "postgres"),
            (None, {"DB_BACKEND": "Supabase"}, "supabase"),
            ("postgres", {"DB_BACKEND": "supabase"}, "postgres"),
            (None, {"USE_POSTGRES": "false"}, "supabase"),
            (None, {"USE_POSTGRES": "TRUE"}, "postgres"),
            (None, {"DB_BACKEND": "postgres", "USE_POSTGRES": "false"}, "postgres"),
        ],
    )
    def test_resolve_backend(self, explicit, environ, expected):
        assert resolve_backend(explicit, environ) == expected

    def test_resolve_backend_rejects_unknown(self):
        with pytest.raises(ValueError, match="DB_BACKEND invalide"):
            resolve_backend(None, {"DB_BACKEND": "mysql"})

    def test_render(self):
        content = render("supabase", generated_at=datetime(2026, 10, 19, tzinfo=UTC))

        assert "USE_POSTGRES: Final[bool] = False" in content
        assert "2026-10-19T00:00:00+00:00" in content

    def test_main_writes_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_BACKEND", "supabase")
        output = tmp_path / "database_config.py"

        assert main(None, dry_run=False, output=output) == 0
        assert "USE_POSTGRES: Final[bool] = False" in output.read_text(encoding="utf-8")

    def test_main_dry_run_does_not_write(self, tmp_path, capsys):
        output = tmp_path / "database_config.py"

        assert main("postgres", dry_run=True, output=output) == 0
        assert not output.exists()
        assert "USE_POSTGRES: Final[bool] = True" in capsys.readouterr().out

    def test_main_invalid_backend(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_BACKEND", "oracle")
        assert main(None, dry_run=False, output=tmp_path / "x.py") == 1


@pytest.mark.asyncio
class TestCreateQueryBackend:
    async def test_postgres_backend_does_not_connect(self):
        backend = await create_query_backend(BackendKind.POSTGRES, Settings(POSTGRES_HOST="db.invalid"))

        assert isinstance(backend, PostgresQueryBackend)
        assert backend.engine.url.host == "db.invalid"
        await backend.close()

    async def test_supabase_requires_url_and_key(self):
        with pytest.raises(DatabaseConnectionError, match="SUPABASE_URL and SUPABASE_KEY"):
            await create_query_backend(BackendKind.SUPABASE, Settings(SUPABASE_URL="", SUPABASE_KEY=""))

    async def test_supabase_backend(self):
        client = MagicMock()
        config = Settings(SUPABASE_URL="https://demo.supabase.co", SUPABASE_KEY="anon", SUPABASE_TIMEOUT=4.0)

        with patch("app.infrastructure.data.factory.acreate_client", AsyncMock(return_value=client)) as create:
            backend = await create_query_backend(BackendKind.SUPABASE, config)

        create.assert_awaited_once_with("https://demo.supabase.co", "anon")
        assert isinstance(backend, SupabaseQueryBackend)
        assert backend.client is client
        assert backend.timeout == 4.0

    async def test_data_context_for_supabase(self):
        backend = SupabaseQueryBackend(MagicMock())
        context = DataContext.for_backend(backend, clinic_alias="sede-norte")

        assert context.kind is BackendKind.SUPABASE
        assert isinstance(context.patients, PatientRepositorySupabase)
        assert context.services.clinic_alias == "sede-norte"


@pytest.mark.asyncio
class TestWaitForDatabase:
    async def test_retries_until_reachable(self):
        backend = MagicMock(kind=BackendKind.POSTGRES)
        backend.ping = AsyncMock(side_effect=[DatabaseConnectionError("down"), None])

        await wait_for_database(backend, attempts=3)
        assert backend.ping.await_count == 2

    async def test_gives_up_after_attempts(self):
        backend = MagicMock(kind=BackendKind.POSTGRES)
        backend.ping = AsyncMock(side_effect=DatabaseConnectionError("down"))

        with pytest.raises(DatabaseConnectionError):
            await wait_for_database(backend, attempts=2)
        assert backend.ping.await_count == 2
