"""Common CLI options for the CLI."""

import typer

ConfigOpt = typer.Option(
    None,
    "--config",
    "-c",
    help="Hudi meta-sync properties file (key=value)",
    exists=True,
    dir_okay=False,
)

ProfileOpt = typer.Option(
    None,
    "--profile",
    "-p",
    help="AWS profile (from ~/.aws/config)",
)

RegionOpt = typer.Option(
    None,
    "--region",
    help="AWS region of the Glue Data Catalog",
)

DatabaseOpt = typer.Option(
    None,
    "--database",
    "-d",
    help="Catalog database name",
)

BasePathOpt = typer.Option(
    None,
    "--base-path",
    help="Hudi table base path",
)

PartitionFieldsOpt = typer.Option(
    None,
    "--partition-fields",
    help="Comma-separated partition field names, in order",
)

CatalogIdOpt = typer.Option(
    None,
    "--catalog-id",
    help="Glue catalog id (AWS account) when not the caller's own",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Show debug logs",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show what would change, but do nothing",
)

YesOpt = typer.Option(
    False,
    "--yes",
    help="Skip confirmation prompt",
)
