"""CLI application for Hudi to AWS Glue catalog sync."""

from pathlib import Path

import typer

from hudiglue.cli.commands.partitions import partitions_app
from hudiglue.cli.commands.sync import sync
from hudiglue.cli.commands.tables import db_app, props_app, table_app
from hudiglue.cli.common.context import build_sync_context
from hudiglue.cli.common.logs import setup_logging
from hudiglue.cli.common.options import (
    BasePathOpt,
    CatalogIdOpt,
    ConfigOpt,
    DatabaseOpt,
    PartitionFieldsOpt,
    ProfileOpt,
    RegionOpt,
    VerboseOpt,
)

app = typer.Typer(
    help="hudiglue - sync Hudi table metadata into the AWS Glue Data Catalog",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    config: Path | None = ConfigOpt,
    profile: str | None = ProfileOpt,
    region: str | None = RegionOpt,
    database: str | None = DatabaseOpt,
    base_path: str | None = BasePathOpt,
    partition_fields: str | None = PartitionFieldsOpt,
    catalog_id: str | None = CatalogIdOpt,
    verbose: bool = VerboseOpt,
):
    """Resolve configuration once per invocation."""
    setup_logging(verbose)
    appctx = build_sync_context(
        config_path=config,
        profile=profile,
        region=region,
        database=database,
        base_path=base_path,
        partition_fields=partition_fields,
        catalog_id=catalog_id,
    )
    ctx.obj = appctx
    ctx.call_on_close(appctx.close)


app.add_typer(db_app, name="db")
app.add_typer(table_app, name="table")
app.add_typer(partitions_app, name="partitions")
app.add_typer(props_app, name="props")
app.command("sync")(sync)


if __name__ == "__main__":
    app()
