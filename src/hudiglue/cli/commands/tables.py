"""Commands for catalog databases, tables and table properties."""

from __future__ import annotations

import typer

from hudiglue.cli.common.context import SyncAppContext
from hudiglue.cli.common.exits import die, exit_from_exc, ok_exit
from hudiglue.cli.common.output import out
from hudiglue.core.errors import CatalogSyncError
from hudiglue.core.properties import LAST_COMMIT_TIME_SYNC

db_app = typer.Typer(help="Catalog database operations.", no_args_is_help=True)
table_app = typer.Typer(help="Catalog table operations.", no_args_is_help=True)
props_app = typer.Typer(help="Table parameters and sync bookkeeping.", no_args_is_help=True)


def _parse_assignments(pairs: list[str]) -> dict[str, str]:
    """Parse KEY=VALUE arguments; invalid input exits with code 2."""
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            die(f"Expected KEY=VALUE, got '{pair}'.", code=2)
        parsed[key.strip()] = value.strip()
    return parsed


@db_app.command("create")
def db_create(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Database name (defaults to --database)"),
):
    """Create a catalog database if it does not exist."""
    appctx: SyncAppContext = ctx.obj
    name = name or appctx.config.database_name

    try:
        with out.status(f"Creating database {name}..."):
            existed = appctx.client.database_exists(name)
            appctx.client.create_database(name)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if existed:
        ok_exit(f"Database '{name}' already exists.")
    out.success(f"Database '{name}' created.")


@db_app.command("exists")
def db_exists(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Database name (defaults to --database)"),
):
    """Exit 0 if the database exists, 1 otherwise."""
    appctx: SyncAppContext = ctx.obj
    name = name or appctx.config.database_name
    try:
        exists = appctx.client.database_exists(name)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if not exists:
        die(f"Database '{name}' does not exist.", code=1)
    out.success(f"Database '{name}' exists.")


@table_app.command("show")
def table_show(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
):
    """Show a catalog table's definition."""
    appctx: SyncAppContext = ctx.obj
    client = appctx.client
    ref = client.table_ref(table)

    try:
        with out.status("Loading table..."):
            if not client.table_exists(ref):
                die(f"Table '{ref}' does not exist.", code=1)
            definition = client.tables.get_table(ref)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.header(f"Table {ref}")
    out.kv(
        {
            "Type": definition.table_type or "",
            "Location": definition.storage_location or "",
            "Input format": definition.input_format or "",
            "Output format": definition.output_format or "",
            "SerDe": definition.serde_class or "",
            "Description": definition.description or "",
        }
    )
    out.columns_table(definition.columns, title="Columns")
    if definition.partition_keys:
        out.columns_table(definition.partition_keys, title="Partition keys")
    out.kv(dict(sorted(definition.parameters.items())))


@table_app.command("schema")
def table_schema(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    storage: bool = typer.Option(
        False, "--storage", help="Also show the storage-side schema for comparison"
    ),
):
    """Show the catalog schema (columns and partition keys) of a table."""
    appctx: SyncAppContext = ctx.obj
    client = appctx.client
    ref = client.table_ref(table)

    try:
        with out.status("Loading schema..."):
            schema = client.get_metastore_schema(ref)
            fields = client.get_storage_field_schemas() if storage else []
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.schema_table(schema, title=f"Catalog schema of {ref}")
    if storage:
        out.columns_table(fields, title="Storage schema")


@table_app.command("comments")
def table_comments(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
):
    """Copy column comments from the storage schema onto the catalog table."""
    appctx: SyncAppContext = ctx.obj
    client = appctx.client
    ref = client.table_ref(table)

    try:
        with out.status("Syncing column comments..."):
            changed = client.update_table_comments(
                ref, [], client.get_storage_field_schemas()
            )
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if changed:
        out.success(f"Column comments of '{ref}' updated.")
    else:
        out.info(f"Column comments of '{ref}' already up to date.")


@props_app.command("show")
def props_show(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
):
    """Show table parameters."""
    appctx: SyncAppContext = ctx.obj
    ref = appctx.client.table_ref(table)
    try:
        params = appctx.client.get_table_properties(ref)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.header(f"Parameters of {ref}")
    out.kv(dict(sorted(params.items())))


@props_app.command("set")
def props_set(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    pairs: list[str] = typer.Argument(..., help="Parameters as KEY=VALUE"),
):
    """Merge parameters into the table's parameter bag."""
    appctx: SyncAppContext = ctx.obj
    updates = _parse_assignments(pairs)
    ref = appctx.client.table_ref(table)

    try:
        with out.status("Updating parameters..."):
            changed = appctx.client.update_table_properties(ref, updates)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if changed:
        out.success(f"Parameters of '{ref}' updated.")
    else:
        out.info(f"Parameters of '{ref}' already up to date.")


@props_app.command("last-sync")
def props_last_sync(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    update: bool = typer.Option(
        False, "--update", help="Stamp the latest storage commit time first"
    ),
):
    """Show (and optionally update) the last synced commit time."""
    appctx: SyncAppContext = ctx.obj
    client = appctx.client
    ref = client.table_ref(table)

    try:
        if update:
            with out.status("Updating last synced commit time..."):
                client.update_last_commit_time_synced(ref)
        last = client.get_last_commit_time_synced(ref)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.kv({LAST_COMMIT_TIME_SYNC: last or "(never synced)"})
