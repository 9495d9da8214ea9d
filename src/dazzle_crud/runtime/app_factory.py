"""App factory functions.

Convenience functions for creating and running a CRUD application from a
SchemaSpec.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from dazzle_crud.runtime.config import ENV_PREFIX, RuntimeConfig, create_store
from dazzle_crud.runtime.exception_handlers import register_exception_handlers
from dazzle_crud.runtime.logging import get_api_logger, log_with_context, setup_logging
from dazzle_crud.runtime.operations import OperationGenerator
from dazzle_crud.runtime.registry import EntityRegistry
from dazzle_crud.runtime.resolvers import ResolverContext
from dazzle_crud.runtime.route_generator import generate_model_routes
from dazzle_crud.runtime.store import Store
from dazzle_crud.specs import SchemaSpec, load_schema

logger = get_api_logger()

SCHEMA_ENV = f"{ENV_PREFIX}SCHEMA"
APP_FACTORY = "dazzle_crud.runtime.app_factory:create_app_from_env"


def create_app(
    spec: SchemaSpec,
    config: RuntimeConfig | None = None,
    store: Store | None = None,
) -> FastAPI:
    """
    Create a FastAPI application from a SchemaSpec.

    Args:
        spec: Schema specification
        config: Runtime configuration (defaults to RuntimeConfig())
        store: Explicit store; otherwise one is chosen from the config

    Returns:
        FastAPI application. The resolver context, registry and generated
        operations are kept on ``app.state``.

    Example:
        >>> app = create_app(SchemaSpec(name="library", entities=[...]))
        >>> # Run with uvicorn: uvicorn mymodule:app
    """
    config = config or RuntimeConfig()
    registry = EntityRegistry.from_entities(spec.entities)
    store = store if store is not None else create_store(config, registry)
    ctx = ResolverContext.create(
        store,
        registry,
        validate=config.validate_input,
        max_depth=config.max_depth,
    )

    generator = OperationGenerator(ctx)
    queries, mutations = generator.generate()

    app = FastAPI(title=spec.name, version=spec.version, description=spec.description or "")
    register_exception_handlers(app)
    for service in generator.services.values():
        app.include_router(generate_model_routes(service))

    @app.get("/_operations", tags=["meta"], summary="List generated operations")
    async def list_operations() -> dict[str, Any]:
        return {
            "entities": {
                name: {
                    "queries": list(service.names.queries),
                    "mutations": list(service.names.mutations),
                    "input_type": service.names.input_type,
                }
                for name, service in generator.services.items()
            }
        }

    app.state.registry = registry
    app.state.resolver_context = ctx
    app.state.queries = queries
    app.state.mutations = mutations

    log_with_context(
        logger,
        logging.INFO,
        f"Created app '{spec.name}' with {len(registry)} entities",
        store=type(store).__name__,
        operations=len(queries) + len(mutations),
    )
    return app


def create_app_from_json(json_path: str | Path, config: RuntimeConfig | None = None) -> FastAPI:
    """
    Create a FastAPI application from a JSON file.

    Args:
        json_path: Path to JSON file containing a SchemaSpec
        config: Runtime configuration
    """
    return create_app(load_schema(json_path), config)


def create_app_from_env() -> FastAPI:
    """
    Create a FastAPI application from DAZZLE_CRUD_* environment variables.

    DAZZLE_CRUD_SCHEMA names the schema JSON file; the rest is read by
    RuntimeConfig.from_env(). Used as the uvicorn factory when reloading,
    since each reloaded worker must rebuild the app from an import string.

    Raises:
        ValueError: If DAZZLE_CRUD_SCHEMA is not set
    """
    schema_path = os.environ.get(SCHEMA_ENV)
    if not schema_path:
        raise ValueError(f"{SCHEMA_ENV} must name the schema file")
    return create_app_from_json(schema_path, RuntimeConfig.from_env())


def run_app(
    spec: SchemaSpec,
    config: RuntimeConfig | None = None,
    reload: bool = False,
    schema_path: str | Path | None = None,
) -> None:
    """
    Run a CRUD application with uvicorn.

    Args:
        spec: Schema specification
        config: Runtime configuration (host, port, storage, logging)
        reload: Enable auto-reload (for development)
        schema_path: File ``spec`` was loaded from; required with ``reload``

    Raises:
        ValueError: If ``reload`` is set without ``schema_path``
    """
    import uvicorn

    config = config or RuntimeConfig.from_env()
    setup_logging(config.log_dir, level=config.log_level)

    if reload:
        if schema_path is None:
            raise ValueError("reload needs the schema file path")
        # Read back by create_app_from_env in the reloaded worker
        os.environ.update(config.to_env())
        os.environ[SCHEMA_ENV] = str(Path(schema_path).resolve())
        uvicorn.run(
            APP_FACTORY,
            factory=True,
            host=config.host,
            port=config.port,
            reload=True,
        )
        return

    app = create_app(spec, config)
    uvicorn.run(app, host=config.host, port=config.port)
