#!/usr/bin/env python3
"""
Granite CLI - Command-line interface for the Granite backend

Usage:
    granite --help
    granite sql classify "UPDATE t SET a = 1"
    granite sql run my-postgres "SELECT * FROM orders"
    granite sql schema my-postgres --driver postgres --database shop
    granite storage ls my-s3 photos-bucket 2024/
    granite storage rm my-s3 photos-bucket 2023/ --recursive
"""

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, List

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .adapters import list_adapters
from .classifier import classify
from .client import GraniteClient
from .config import settings
from .exceptions import GraniteError
from .models import QueryResult
from .schema_introspection import build_schema
from .sql import SQLClient
from .storage import StorageClient, format_file_size

# =============================================================================
# CONFIGURATION
# =============================================================================

console = Console()

DRIVER_OPTION = click.option(
    "--driver", "-d",
    type=click.Choice(list_adapters(), case_sensitive=False),
    required=True,
    help="SQL driver of the connection"
)


def configure_logging(verbose: bool):
    level = logging.DEBUG if verbose else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)]
    )


def run_with_client(ctx, operation: Callable[[GraniteClient], Awaitable[Any]]) -> Any:
    """Run an async operation against a fresh client, exiting 1 on client errors."""
    async def runner():
        async with GraniteClient(url=ctx.obj.get("url"), transport=ctx.obj.get("transport")) as client:
            return await operation(client)

    try:
        return asyncio.run(runner())
    except GraniteError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


def echo_json(data: Any):
    click.echo(json.dumps(data, indent=2, default=str))


def print_result(ctx, result: QueryResult, title: str = "Results"):
    """Render one QueryResult; an error result exits with status 1."""
    if ctx.obj.get("output_json"):
        echo_json(result.to_dict())
    elif result.kind == "error":
        console.print(f"[red]Error: {escape(result.error)}[/red]")
    elif result.kind == "affected":
        console.print(f"[green]{result.rows_affected} row(s) affected[/green]")
    elif not result.rows:
        console.print("[yellow]No results[/yellow]")
    else:
        table = Table(title=title, show_header=True)
        for column in result.columns:
            table.add_column(escape(str(column)), style="cyan")
        for row in result.rows:
            table.add_row(*[escape(str(row.get(c, ""))) for c in result.columns])
        console.print(table)
        console.print(f"\n[dim]{result.row_count} row(s)[/dim]")

    if not result.ok:
        sys.exit(1)


def print_names(ctx, names: List[str], title: str):
    if ctx.obj.get("output_json"):
        echo_json(names)
        return
    if not names:
        console.print(f"[yellow]No {title.lower()} found[/yellow]")
        return
    table = Table(title=title, show_header=False)
    table.add_column("Name", style="cyan")
    for name in names:
        table.add_row(escape(name))
    console.print(table)


# =============================================================================
# MAIN CLI GROUP
# =============================================================================

@click.group()
@click.option("--url", envvar="GRANITE_URL", help="Granite backend URL")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Log requests to stderr")
@click.version_option(version=__version__, prog_name="granite")
@click.pass_context
def cli(ctx, url, output_json, verbose):
    """
    Granite CLI - Query SQL databases and browse object storage.

    \b
    Environment Variables:
        GRANITE_URL     - Backend URL (default: http://localhost:7777)
        GRANITE_TIMEOUT - Request timeout in seconds
    """
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["output_json"] = output_json
    configure_logging(verbose)


# =============================================================================
# SQL COMMANDS
# =============================================================================

@cli.group()
def sql():
    """Run SQL and inspect database catalogs."""
    pass


@sql.command("classify")
@click.argument("statement")
def sql_classify(statement):
    """Show which endpoint a statement is routed to (read or write)."""
    click.echo(classify(statement).value)


@sql.command("run")
@click.argument("connection")
@click.argument("statement", required=False)
@click.option("--file", "-f", "script_file", type=click.File("r"), help="Run every statement of a script")
@click.pass_context
def sql_run(ctx, connection, statement, script_file):
    """
    Execute SQL against a saved connection.

    \b
    Examples:
        granite sql run my-postgres "SELECT * FROM orders LIMIT 10"
        granite sql run my-postgres --file migrate.sql
    """
    if bool(statement) == bool(script_file):
        console.print("[red]Provide either a statement or --file[/red]")
        sys.exit(1)

    if script_file:
        script = script_file.read()
        results = run_with_client(ctx, lambda c: SQLClient(c).execute_script(connection, script))
        if ctx.obj.get("output_json"):
            echo_json([r.to_dict() for r in results])
            if results and not results[-1].ok:
                sys.exit(1)
            return
        for index, result in enumerate(results, 1):
            print_result(ctx, result, title=f"Statement {index}")
        return

    result = run_with_client(ctx, lambda c: SQLClient(c).execute_sql(connection, statement))
    print_result(ctx, result)


@sql.command("databases")
@click.argument("connection")
@DRIVER_OPTION
@click.pass_context
def sql_databases(ctx, connection, driver):
    """List databases visible to a connection."""
    names = run_with_client(ctx, lambda c: SQLClient(c).list_databases(connection, driver))
    print_names(ctx, names, "Databases")


@sql.command("tables")
@click.argument("connection")
@DRIVER_OPTION
@click.option("--database", help="Database to list (requires --dsn)")
@click.option("--dsn", help="Stored DSN of the connection, retargeted to --database")
@click.pass_context
def sql_tables(ctx, connection, driver, database, dsn):
    """List tables of a connection."""
    names = run_with_client(
        ctx, lambda c: SQLClient(c).list_tables(connection, driver, database=database, dsn=dsn)
    )
    print_names(ctx, names, "Tables")


@sql.command("columns")
@click.argument("connection")
@click.argument("table")
@DRIVER_OPTION
@click.option("--database", help="Database of the table (requires --dsn)")
@click.option("--dsn", help="Stored DSN of the connection, retargeted to --database")
@click.pass_context
def sql_columns(ctx, connection, table, driver, database, dsn):
    """Show the columns of a table."""
    columns = run_with_client(
        ctx, lambda c: SQLClient(c).list_columns(connection, driver, table, database=database, dsn=dsn)
    )

    if ctx.obj.get("output_json"):
        echo_json([col.to_dict() for col in columns])
        return

    table_view = Table(title=f"Columns: {escape(table)}", show_header=True)
    table_view.add_column("Name", style="cyan")
    table_view.add_column("Type", style="green")
    table_view.add_column("Nullable")
    table_view.add_column("PK", style="yellow")
    for col in columns:
        table_view.add_row(
            escape(col.name),
            escape(col.type),
            "yes" if col.nullable else "no",
            "✓" if col.primary_key else ""
        )
    console.print(table_view)


@sql.command("schema")
@click.argument("connection")
@DRIVER_OPTION
@click.option("--database", help="Database to introspect (requires --dsn)")
@click.option("--dsn", help="Stored DSN of the connection, retargeted to --database")
@click.option("--limit", type=int, default=None, help="Maximum tables to fetch columns for")
@click.pass_context
def sql_schema(ctx, connection, driver, database, dsn, limit):
    """Build the table/column map of a database."""
    schema = run_with_client(
        ctx,
        lambda c: build_schema(SQLClient(c), connection, driver, database=database, dsn=dsn, fetch_limit=limit)
    )

    if ctx.obj.get("output_json"):
        echo_json(schema.to_dict())
        return

    for table in schema.tables:
        columns = schema.columns.get(table)
        if columns is None:
            console.print(f"[bold]{escape(table)}[/bold] [dim](columns not fetched)[/dim]")
            continue
        described = ", ".join(
            f"{escape(c.name)} [dim]{escape(c.type)}[/dim]{' [yellow]PK[/yellow]' if c.primary_key else ''}"
            for c in columns
        )
        console.print(f"[bold]{escape(table)}[/bold]: {described}")


# =============================================================================
# STORAGE COMMANDS
# =============================================================================

@cli.group()
def storage():
    """Browse and manage object storage."""
    pass


@storage.command("containers")
@click.argument("connection")
@click.pass_context
def storage_containers(ctx, connection):
    """List buckets / containers."""
    containers = run_with_client(ctx, lambda c: StorageClient(c, connection).list_containers())

    if ctx.obj.get("output_json"):
        echo_json([{"name": c.name, "createdAt": c.created_at, "region": c.region} for c in containers])
        return

    table = Table(title="Containers", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Region", style="yellow")
    table.add_column("Created", style="dim")
    for container in containers:
        table.add_row(
            escape(container.name),
            container.region or "",
            (container.created_at or "")[:10]
        )
    console.print(table)


@storage.command("ls")
@click.argument("connection")
@click.argument("container")
@click.argument("prefix", required=False, default="")
@click.option("--recursive", "-r", is_flag=True, help="List everything under the prefix")
@click.option("--max-keys", type=int, default=None, help="Page size")
@click.pass_context
def storage_ls(ctx, connection, container, prefix, recursive, max_keys):
    """List one level of a container (or everything with --recursive)."""
    page = run_with_client(
        ctx,
        lambda c: StorageClient(c, connection).list_objects(
            container, prefix=prefix, delimiter="" if recursive else "/", max_keys=max_keys
        )
    )

    if ctx.obj.get("output_json"):
        echo_json({
            "objects": [o.to_dict() for o in page.objects],
            "prefixes": page.prefixes,
            "isTruncated": page.is_truncated,
            "continuationToken": page.continuation_token,
        })
        return

    table = Table(title=f"{escape(container)}/{escape(prefix)}", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Modified", style="dim")
    for entry in page.entries():
        if entry.is_folder:
            table.add_row(f"[bold]{escape(entry.key)}[/bold]", "", "")
        else:
            table.add_row(escape(entry.key), format_file_size(entry.size), entry.last_modified[:19])
    console.print(table)

    if page.is_truncated:
        console.print("[dim]More objects available (listing truncated)[/dim]")


@storage.command("rm")
@click.argument("connection")
@click.argument("container")
@click.argument("keys", nargs=-1, required=True)
@click.option("--recursive", "-r", is_flag=True, help="Treat each key as a folder and delete everything under it")
@click.pass_context
def storage_rm(ctx, connection, container, keys, recursive):
    """Delete objects, or whole folders with --recursive."""
    async def remove(client):
        storage_client = StorageClient(client, connection)
        if not recursive:
            await storage_client.delete_objects(container, list(keys))
            return len(keys)
        total = 0
        for key in keys:
            folder = key.rstrip("/") + "/"
            total += await storage_client.delete_prefix(container, folder)
        return total

    deleted = run_with_client(ctx, remove)

    if ctx.obj.get("output_json"):
        echo_json({"deleted": deleted})
    else:
        console.print(f"[green]Deleted {deleted} object(s)[/green]")


@storage.command("upload")
@click.argument("connection")
@click.argument("container")
@click.argument("key")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--content-type", help="Content type sent with the file")
@click.pass_context
def storage_upload(ctx, connection, container, key, file, content_type):
    """Upload a local file to KEY."""
    with open(file, "rb") as f:
        data = f.read()

    run_with_client(
        ctx, lambda c: StorageClient(c, connection).upload_object(container, key, data, content_type=content_type)
    )
    console.print(f"[green]Uploaded {escape(file)} to {escape(container)}/{escape(key)}[/green]")


@storage.command("presign")
@click.argument("connection")
@click.argument("container")
@click.argument("key")
@click.option("--expires-in", type=int, default=None, help="URL lifetime in seconds")
@click.pass_context
def storage_presign(ctx, connection, container, key, expires_in):
    """Print a time-limited download URL."""
    url = run_with_client(
        ctx, lambda c: StorageClient(c, connection).get_presigned_url(container, key, expires_in=expires_in)
    )
    click.echo(url)


# =============================================================================
# ENTRY POINT
# =============================================================================

def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
