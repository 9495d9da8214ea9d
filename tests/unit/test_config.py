"""Tests for RuntimeConfig and store selection."""

from pathlib import Path

import pytest

from dazzle_crud.runtime.config import RuntimeConfig, create_store
from dazzle_crud.runtime.registry import EntityRegistry
from dazzle_crud.runtime.resolvers import DEFAULT_MAX_DEPTH
from dazzle_crud.runtime.sqlite_store import SQLiteStore
from dazzle_crud.runtime.store import InMemoryStore


class TestRuntimeConfig:
    def test_defaults(self) -> None:
        config = RuntimeConfig.from_env({})

        assert config.database_path is None
        assert config.max_depth == DEFAULT_MAX_DEPTH
        assert config.validate_input is True
        assert config.log_dir == Path(".dazzle/logs")
        assert config.log_level == "INFO"
        assert (config.host, config.port) == ("127.0.0.1", 8000)

    def test_from_env(self) -> None:
        config = RuntimeConfig.from_env(
            {
                "DAZZLE_CRUD_DATABASE": "/tmp/crud.db",
                "DAZZLE_CRUD_MAX_DEPTH": "5",
                "DAZZLE_CRUD_LOG_DIR": "/tmp/logs",
                "DAZZLE_CRUD_LOG_LEVEL": "debug",
                "DAZZLE_CRUD_HOST": "0.0.0.0",
                "DAZZLE_CRUD_PORT": "9000",
            }
        )

        assert config.database_path == Path("/tmp/crud.db")
        assert config.max_depth == 5
        assert config.log_dir == Path("/tmp/logs")
        assert config.log_level == "DEBUG"
        assert config.host == "0.0.0.0"
        assert config.port == 9000

    def test_to_env_round_trips(self) -> None:
        config = RuntimeConfig(
            database_path=Path("/tmp/crud.db"),
            max_depth=7,
            log_dir=Path("/tmp/logs"),
            log_level="DEBUG",
            host="0.0.0.0",
            port=9000,
        )

        assert RuntimeConfig.from_env(config.to_env()) == config

    def test_to_env_omits_in_memory_database(self) -> None:
        assert "DAZZLE_CRUD_DATABASE" not in RuntimeConfig().to_env()

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid_numbers(self, raw: str) -> None:
        with pytest.raises(ValueError, match="DAZZLE_CRUD_PORT"):
            RuntimeConfig.from_env({"DAZZLE_CRUD_PORT": raw})


class TestCreateStore:
    def test_in_memory_by_default(self, registry: EntityRegistry) -> None:
        assert isinstance(create_store(RuntimeConfig(), registry), InMemoryStore)

    def test_sqlite_when_database_set(self, tmp_path: Path, registry: EntityRegistry) -> None:
        config = RuntimeConfig(database_path=tmp_path / "crud.db")

        store = create_store(config, registry)

        assert isinstance(store, SQLiteStore)
        assert store.db.table_exists("Book")
