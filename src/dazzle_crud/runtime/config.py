"""
Runtime configuration.

Groups the runtime options into a single object. Values can be read from
the environment with RuntimeConfig.from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dazzle_crud.runtime.registry import EntityRegistry
from dazzle_crud.runtime.resolvers import DEFAULT_MAX_DEPTH
from dazzle_crud.runtime.store import InMemoryStore, Store

ENV_PREFIX = "DAZZLE_CRUD_"


@dataclass
class RuntimeConfig:
    """
    Configuration for the CRUD runtime and its HTTP app.
    """

    # Storage: None keeps everything in memory
    database_path: Path | None = None

    # Nested resolution
    max_depth: int = DEFAULT_MAX_DEPTH
    validate_input: bool = True

    # Logging
    log_dir: Path = field(default_factory=lambda: Path(".dazzle/logs"))
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> RuntimeConfig:
        """
        Build a config from DAZZLE_CRUD_* environment variables.

        Recognised: DAZZLE_CRUD_DATABASE, DAZZLE_CRUD_MAX_DEPTH,
        DAZZLE_CRUD_LOG_DIR, DAZZLE_CRUD_LOG_LEVEL, DAZZLE_CRUD_HOST,
        DAZZLE_CRUD_PORT.

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        env = os.environ if environ is None else environ
        config = cls()

        database = env.get(f"{ENV_PREFIX}DATABASE")
        if database:
            config.database_path = Path(database)
        if max_depth := env.get(f"{ENV_PREFIX}MAX_DEPTH"):
            config.max_depth = _positive_int(f"{ENV_PREFIX}MAX_DEPTH", max_depth)
        if log_dir := env.get(f"{ENV_PREFIX}LOG_DIR"):
            config.log_dir = Path(log_dir)
        if log_level := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            config.log_level = log_level.upper()
        if host := env.get(f"{ENV_PREFIX}HOST"):
            config.host = host
        if port := env.get(f"{ENV_PREFIX}PORT"):
            config.port = _positive_int(f"{ENV_PREFIX}PORT", port)

        return config

    def to_env(self) -> dict[str, str]:
        """Render this config as DAZZLE_CRUD_* variables (inverse of from_env)."""
        env = {
            f"{ENV_PREFIX}MAX_DEPTH": str(self.max_depth),
            f"{ENV_PREFIX}LOG_DIR": str(self.log_dir),
            f"{ENV_PREFIX}LOG_LEVEL": self.log_level,
            f"{ENV_PREFIX}HOST": self.host,
            f"{ENV_PREFIX}PORT": str(self.port),
        }
        if self.database_path is not None:
            env[f"{ENV_PREFIX}DATABASE"] = str(self.database_path)
        return env


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def create_store(config: RuntimeConfig, registry: EntityRegistry) -> Store:
    """Pick the store the config asks for."""
    if config.database_path is None:
        return InMemoryStore()

    from dazzle_crud.runtime.sqlite_store import SQLiteStore

    return SQLiteStore.open(config.database_path, registry)
