"""Commands for catalog partitions."""

from __future__ import annotations

import typer

from hudiglue.cli.common.context import SyncAppContext
from hudiglue.cli.common.exits import die, exit_from_exc, warn_exit
from hudiglue.cli.common.options import DryRunOpt, YesOpt
from hudiglue.cli.common.output import out
from hudiglue.core.errors import CatalogSyncError
from hudiglue.core.models import PartitionRecord

partitions_app = typer.Typer(help="Catalog partition operations.", no_args_is_help=True)


def _relative_path(record: PartitionRecord, base_path: str) -> str | None:
    """Partition path relative to the base path, or None if it lives elsewhere."""
    base = base_path.rstrip("/") + "/"
    location = record.location or ""
    if not location.startswith(base):
        return None
    return location[len(base) :].strip("/")


def stale_partition_paths(appctx: SyncAppContext, table: str) -> list[str]:
    """Catalog partitions whose directory no longer exists on local storage."""
    resolver = appctx.resolver()
    if resolver is None:
        die("Finding stale partitions needs a local --base-path.", code=2)
    client = appctx.client
    on_storage = set(resolver.list_partition_paths(len(appctx.config.partition_fields)))
    stale = []
    for record in client.get_all_partitions(client.table_ref(table)):
        rel = _relative_path(record, appctx.config.base_path)
        if rel is not None and rel not in on_storage:
            stale.append(rel)
    return stale


@partitions_app.command("list")
def partitions_list(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
):
    """List catalog partitions of a table."""
    appctx: SyncAppContext = ctx.obj
    ref = appctx.client.table_ref(table)

    try:
        with out.status("Loading partitions..."):
            partitions = appctx.client.get_all_partitions(ref)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if not partitions:
        warn_exit("No partitions found.")

    out.info(f"Table: {ref} | Partitions: {len(partitions)}")
    out.partitions_table(partitions, title="Partitions")


@partitions_app.command("add")
def partitions_add(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    paths: list[str] = typer.Argument(..., help="Partition paths relative to the base path"),
):
    """Add partitions (already existing ones are ignored)."""
    appctx: SyncAppContext = ctx.obj
    ref = appctx.client.table_ref(table)

    try:
        with out.status(f"Adding {len(paths)} partition(s)..."):
            appctx.client.add_partitions_to_table(ref, paths)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.success(f"Added {len(paths)} partition(s) to '{ref}'.")


@partitions_app.command("update")
def partitions_update(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    paths: list[str] = typer.Argument(..., help="Partition paths relative to the base path"),
):
    """Re-point partitions at their location under the base path."""
    appctx: SyncAppContext = ctx.obj
    ref = appctx.client.table_ref(table)

    try:
        with out.status(f"Updating {len(paths)} partition(s)..."):
            appctx.client.update_partitions_to_table(ref, paths)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.success(f"Updated {len(paths)} partition(s) of '{ref}'.")


@partitions_app.command("drop")
def partitions_drop(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    paths: list[str] | None = typer.Argument(
        None, help="Partition paths; omit to pick from partitions missing on storage"
    ),
    all_: bool = typer.Option(
        False, "--all", help="Drop every stale partition without selection UI"
    ),
    dry_run: bool = DryRunOpt,
    yes: bool = YesOpt,
):
    """Drop partitions from the catalog (data on storage is not touched)."""
    appctx: SyncAppContext = ctx.obj
    ref = appctx.client.table_ref(table)

    if paths:
        selected = list(paths)
    else:
        try:
            with out.status("Looking for partitions missing on storage..."):
                stale = stale_partition_paths(appctx, table)
        except CatalogSyncError as exc:
            exit_from_exc(exc, message=str(exc), code=1)
        if not stale:
            warn_exit("No stale partitions found.")
        out.partitions_table(stale, title="Stale partitions")
        selected = stale if all_ else out.select_many("Select partitions to drop:", stale)

    if not selected:
        warn_exit("No partitions selected.")

    out.header("Partitions to drop")
    out.partitions_table(selected, title=f"Drop from {ref}")

    if dry_run:
        warn_exit("DRY RUN: no changes will be made.")

    if not yes:
        if not out.confirm(f"Drop {len(selected)} partition(s) from '{ref}'?"):
            warn_exit("Cancelled.")

    try:
        with out.status(f"Dropping {len(selected)} partition(s)..."):
            appctx.client.drop_partitions(ref, selected)
    except CatalogSyncError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.success(f"Dropped {len(selected)} partition(s) from '{ref}'.")
