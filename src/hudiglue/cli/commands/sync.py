"""The `sync` command: reconcile one table end to end."""

from __future__ import annotations

import typer

from hudiglue.cli.common.context import SyncAppContext
from hudiglue.cli.common.exits import die, exit_from_exc
from hudiglue.cli.common.output import out
from hudiglue.core.errors import CatalogSyncError
from hudiglue.core.sync import sync_table


def sync(
    ctx: typer.Context,
    table: str | None = typer.Argument(None, help="Table name (defaults to the configured table)"),
    dropped: list[str] = typer.Option(
        [],
        "--dropped",
        help="Partition path deleted on storage since the last sync. Repeatable.",
        show_default=False,
    ),
    comments: bool = typer.Option(
        False, "--comments", help="Also sync column comments from the storage schema"
    ),
):
    """Create/update the catalog table, its partitions and sync bookkeeping."""
    appctx: SyncAppContext = ctx.obj
    config = appctx.config
    table = table or config.table_name
    if not table:
        die("Missing table. Provide it as an argument or in the config file.", code=2)

    resolver = appctx.resolver()
    if resolver is None:
        die("sync needs a local --base-path to read the Hudi timeline.", code=2)

    try:
        storage_paths = resolver.list_partition_paths(len(config.partition_fields))
    except OSError as exc:
        exit_from_exc(exc, message=f"Cannot list partitions under {config.base_path}", code=1)

    try:
        with out.status(f"Syncing {config.database_name}.{table}..."):
            result = sync_table(
                appctx.client,
                table,
                storage_paths,
                dropped_paths=dropped,
                sync_comments=comments,
            )
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.header("Sync result")
    out.sync_result(result)
    out.success(f"Synced '{result.table}'.")
