"""
dazzle-crud CLI.

Commands:
- check: Load an entity declarations file and list the generated operations
- serve: Run the HTTP app for an entity declarations file
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from dazzle_crud import __version__
from dazzle_crud.runtime.naming import generate_field_names, to_api_plural
from dazzle_crud.runtime.registry import EntityRegistry
from dazzle_crud.specs import SchemaSpec, load_schema

app = typer.Typer(
    help="Generated CRUD operations with nested entity resolution",
    no_args_is_help=True,
)

console = Console()


def _load(spec_file: Path) -> tuple[SchemaSpec, EntityRegistry]:
    try:
        spec = load_schema(spec_file)
        registry = EntityRegistry.from_entities(spec.entities)
    except OSError as e:
        console.print(f"[red]Cannot read {spec_file}: {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid schema in {spec_file}:[/red]\n{e}")
        raise typer.Exit(1)
    return spec, registry


@app.command(name="version")
def version_command() -> None:
    """Show the installed version."""
    console.print(f"dazzle-crud {__version__}")


@app.command(name="check")
def check_command(
    spec_file: Path = typer.Argument(..., help="JSON file with the entity declarations"),
) -> None:
    """Validate a schema and list the operations generated for it."""
    spec, registry = _load(spec_file)

    table = Table(title=f"{spec.name} {spec.version}")
    table.add_column("Entity", style="cyan")
    table.add_column("Relations")
    table.add_column("Queries")
    table.add_column("Mutations")
    table.add_column("Route")

    for entity in registry:
        names = generate_field_names(entity.name)
        relations = ", ".join(
            f"{f.name} -> {f.type.ref_entity}{'[]' if f.type.many else ''}"
            for f in entity.relation_fields
        )
        table.add_row(
            entity.name,
            relations or "-",
            ", ".join(names.queries),
            ", ".join(names.mutations),
            f"/{to_api_plural(entity.name)}",
        )

    console.print(table)
    console.print(f"[green]{len(registry)} entities OK[/green]")


@app.command(name="serve")
def serve_command(
    spec_file: Path = typer.Argument(..., help="JSON file with the entity declarations"),
    host: str | None = typer.Option(None, "--host", help="Host to bind to"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind to"),
    database: Path | None = typer.Option(
        None,
        "--database",
        "-d",
        help="SQLite database file (default: in-memory store)",
    ),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Serve the generated CRUD operations over HTTP."""
    from dazzle_crud.runtime.app_factory import run_app
    from dazzle_crud.runtime.config import RuntimeConfig

    spec, _ = _load(spec_file)

    try:
        config = RuntimeConfig.from_env()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if host:
        config.host = host
    if port:
        config.port = port
    if database:
        config.database_path = database

    store = str(config.database_path) if config.database_path else "memory"
    console.print(
        f"[green]Serving {spec.name} on http://{config.host}:{config.port} (store: {store})[/green]"
    )
    run_app(spec, config, reload=reload, schema_path=spec_file)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
