# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for datastore-sql (datastore-sql command).

Commands:
    setup: Create or update every table of a model registry
    tables: Show the columns derived for each model
    scan: List rows of a table
    version: Show version info

Connection options default from DATASTORE_SQL_* environment variables.
"""

from __future__ import annotations

import asyncio
import functools
import json
from collections.abc import Callable
from dataclasses import replace
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import config_from_env
from .datastore import SqlDatastore
from .errors import DatastoreError
from .schema import load_models

console = Console()


def store_options(func: Callable) -> Callable:
    """Options shared by every command that opens a datastore."""

    @click.option(
        "--models", "-m", "models_path", required=True,
        type=click.Path(exists=True, dir_okay=False),
        help="Model registry (JSON).",
    )
    @click.option("--dialect", default=None, help="sqlite, postgres or mysql.")
    @click.option("--storage", default=None, help="SQLite database file.")
    @click.option("--database", default=None, help="Database name.")
    @click.option("--prefix", default=None, help="Table name prefix.")
    @functools.wraps(func)
    def wrapper(**kwargs: Any) -> Any:
        return func(**kwargs)

    return wrapper


def open_store(
    models_path: str,
    dialect: str | None,
    storage: str | None,
    database: str | None,
    prefix: str | None,
) -> SqlDatastore:
    """Build a datastore from env config overridden by command options."""
    overrides = {
        "dialect": dialect,
        "storage": storage,
        "database": database,
        "prefix": prefix,
    }
    config = replace(
        config_from_env(), **{k: v for k, v in overrides.items() if v is not None}
    )
    return SqlDatastore(config=config, models=load_models(models_path))


def parse_param(value: str) -> tuple[str, Any]:
    """'name=value' -> (name, value). JSON values are decoded."""
    if "=" not in value:
        raise click.BadParameter(f"expected NAME=VALUE, got '{value}'")
    name, raw = value.split("=", 1)
    try:
        return name, json.loads(raw)
    except json.JSONDecodeError:
        return name, raw


# ============================================================================
# CLI Commands
# ============================================================================


@click.group()
@click.version_option(package_name="datastore-sql")
def main() -> None:
    """datastore-sql - Schema-driven relational storage."""
    pass


@main.command("setup")
@store_options
def setup_cmd(**options: Any) -> None:
    """Create missing tables, columns and indexes."""
    store = open_store(**options)

    async def run() -> None:
        try:
            await store.setup("true")
        finally:
            await store.close()

    asyncio.run(run())
    console.print(f"[green]Synchronized {len(store.tables)} table(s)[/green]")


@main.command("tables")
@store_options
def tables_cmd(**options: Any) -> None:
    """Show the physical columns derived for each model."""
    store = open_store(**options)
    dialect = store.dialect

    for logical_name, sql_table in store.tables.items():
        table = Table(title=f"{logical_name} -> {sql_table.name}")
        table.add_column("Column", style="cyan")
        table.add_column("Definition")
        table.add_column("Constraints")

        for col in sql_table.columns.values():
            constraints = []
            if col.primary_key:
                constraints.append("[yellow]primary key[/yellow]")
            if col.unique:
                constraints.append(f"unique ({col.unique})")
            if col.name in sql_table.indexes:
                constraints.append("index")
            table.add_row(col.name, col.to_sql(dialect), ", ".join(constraints))

        console.print(table)


@main.command("scan")
@click.argument("table_name")
@store_options
@click.option("--param", "-p", "params", multiple=True, help="Filter NAME=VALUE (repeatable).")
@click.option("--sort-by", default=None, help="Sort key.")
@click.option("--ascending", is_flag=True, help="Sort ascending (default descending).")
@click.option("--count", type=int, default=None, help="Rows per page.")
@click.option("--page", type=int, default=1, show_default=True, help="Page number.")
def scan_cmd(
    table_name: str,
    params: tuple[str, ...],
    sort_by: str | None,
    ascending: bool,
    count: int | None,
    page: int,
    **options: Any,
) -> None:
    """List rows of TABLE_NAME."""
    store = open_store(**options)
    request: dict[str, Any] = {
        "table": table_name,
        "params": dict(parse_param(p) for p in params),
        "sort": "ascending" if ascending else "descending",
    }
    if sort_by:
        request["sortBy"] = sort_by
    if count:
        request["paginate"] = {"count": count, "page": page}

    async def run() -> list[dict[str, Any]]:
        try:
            return await store.scan(request)
        finally:
            await store.close()

    try:
        rows = asyncio.run(run())
    except DatastoreError as e:
        raise click.ClickException(str(e)) from e

    if not rows:
        console.print("[dim]No rows found.[/dim]")
        return

    columns: list[str] = []
    for row in rows:
        columns.extend(k for k in row if k not in columns)

    table = Table(title=table_name)
    for name in columns:
        table.add_column(name)
    for row in rows:
        table.add_row(*(_cell(row.get(name)) for name in columns))
    console.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, (dict, list)):
        return escape(json.dumps(value))
    return escape(str(value))


@main.command("version")
def version_cmd() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"datastore-sql {__version__}")


if __name__ == "__main__":
    main()
