import pytest

from backend.app import database


def test_sqlite_urls_get_thread_sharing_disabled():
    assert database.engine_options("sqlite:///:memory:") == {
        "connect_args": {"check_same_thread": False}
    }


def test_postgres_pool_settings_come_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_POOL_SIZE", "12")
    monkeypatch.setenv("DATABASE_CONNECT_TIMEOUT", "3")

    options = database.engine_options("postgresql+psycopg://fleet@db/fleet")

    assert options["pool_size"] == 12
    assert options["max_overflow"] == database.DEFAULT_MAX_OVERFLOW
    assert options["connect_args"] == {"connect_timeout": 3}


def test_invalid_integer_env_is_rejected(monkeypatch):
    monkeypatch.setenv("DATABASE_POOL_SIZE", "many")

    with pytest.raises(ValueError):
        database.engine_options("postgresql+psycopg://fleet@db/fleet")


def test_require_postgres_rejects_sqlite(monkeypatch):
    monkeypatch.setenv("REQUIRE_POSTGRES", "1")

    with pytest.raises(RuntimeError):
        database._resolve_database_url("sqlite:///:memory:")
    with pytest.raises(RuntimeError):
        database._resolve_database_url(None)


def test_missing_url_falls_back_to_local_sqlite(monkeypatch):
    monkeypatch.delenv("REQUIRE_POSTGRES", raising=False)

    assert database._resolve_database_url(None).endswith("fleet.db")
