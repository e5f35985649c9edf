"""One-shot table sync driver.

Brings a single Hudi table in line with the catalog: database and table
existence, schema, column comments, partitions and the last-synced commit
marker. Partition diffing lives here, not in the reconcilers, which only
execute already-decided adds, updates and drops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Sequence

from hudiglue.core.client import GlueCatalogSyncClient
from hudiglue.core.models import CatalogTableRef, PartitionRecord
from hudiglue.core.partitions import PartitionValueExtractor, partition_location
from hudiglue.core.schema import columns_from_schema, partition_columns, schema_to_type_map

logger = logging.getLogger(__name__)

HOODIE_INPUT_FORMAT = "org.apache.hudi.hadoop.HoodieParquetInputFormat"
PARQUET_OUTPUT_FORMAT = "org.apache.hadoop.hive.ql.io.parquet.MapredParquetOutputFormat"
PARQUET_SERDE = "org.apache.hadoop.hive.ql.io.parquet.serde.ParquetHiveSerDe"


class PartitionEventType(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DROP = "drop"


@dataclass(frozen=True)
class PartitionEvent:
    """A decided change for one storage partition path."""

    event_type: PartitionEventType
    path: str


@dataclass(frozen=True)
class SyncResult:
    """Summary of what a table sync changed."""

    table: CatalogTableRef
    created: bool = False
    schema_updated: bool = False
    comments_updated: bool = False
    added: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    dropped: tuple[str, ...] = ()
    properties_updated: bool = False
    last_commit_time_updated: bool = False


def partition_events(
    catalog_partitions: Iterable[PartitionRecord],
    storage_paths: Iterable[str],
    extractor: PartitionValueExtractor,
    base_path: str,
    dropped_paths: Iterable[str] = (),
) -> list[PartitionEvent]:
    """
    Diff storage partition paths against the catalog listing.

    Paths unknown to the catalog become ADD, paths whose location moved
    become UPDATE, and every path in `dropped_paths` becomes DROP.
    Partitions are matched by their values, not by path text.
    """
    locations = {p.values: (p.location or "").rstrip("/") for p in catalog_partitions}
    events = []
    for path in storage_paths:
        values = tuple(extractor.extract_partition_values(path))
        if not values:
            continue
        location = partition_location(base_path, path)
        if values not in locations:
            events.append(PartitionEvent(PartitionEventType.ADD, path))
        elif locations[values] != location:
            events.append(PartitionEvent(PartitionEventType.UPDATE, path))
    for path in dropped_paths:
        events.append(PartitionEvent(PartitionEventType.DROP, path))
    return events


def _paths(events: Sequence[PartitionEvent], kind: PartitionEventType) -> list[str]:
    return [e.path for e in events if e.event_type is kind]


def sync_table(
    client: GlueCatalogSyncClient,
    table_name: str,
    storage_paths: Sequence[str],
    *,
    dropped_paths: Sequence[str] = (),
    input_format: str = HOODIE_INPUT_FORMAT,
    output_format: str = PARQUET_OUTPUT_FORMAT,
    serde_class: str = PARQUET_SERDE,
    serde_properties: Mapping[str, str] | None = None,
    table_properties: Mapping[str, str] | None = None,
    sync_comments: bool = False,
) -> SyncResult:
    """
    Reconcile one table end to end.

    Args:
        client: Sync client bound to the target database and a storage resolver.
        table_name: Catalog table name.
        storage_paths: Partition paths currently present on storage.
        dropped_paths: Partition paths deleted on storage since the last sync.
        input_format: Input format used when the table has to be created.
        output_format: Output format used when the table has to be created.
        serde_class: SerDe library used when the table has to be created.
        serde_properties: SerDe parameters used when the table has to be created.
        table_properties: Parameters merged into the table on every sync.
        sync_comments: Also copy column comments from the storage schema.

    Returns:
        A SyncResult describing every change that was applied.
    """
    config = client.config
    ref = client.table_ref(table_name)
    storage_schema = client.tables.get_storage_schema()
    props = dict(table_properties or {})

    client.create_database(config.database_name)

    created = False
    schema_updated = False
    if not client.table_exists(ref):
        logger.info("Creating table %s", ref)
        serde = {"path": config.base_path, **(serde_properties or {})}
        client.create_table(
            ref, storage_schema, input_format, output_format, serde_class, serde, props
        )
        created = True
    else:
        type_map = schema_to_type_map(storage_schema, config.support_timestamp_type)
        wanted = {
            c.name: c.type.upper()
            for c in columns_from_schema(type_map, config.partition_fields)
            + partition_columns(type_map, config.partition_fields)
        }
        if client.get_metastore_schema(ref) != wanted:
            logger.info("Schema of %s changed, updating", ref)
            client.update_table_schema(ref, storage_schema)
            schema_updated = True

    comments_updated = False
    if sync_comments:
        comments_updated = client.update_table_comments(
            ref, [], client.get_storage_field_schemas()
        )

    events = partition_events(
        client.get_all_partitions(ref),
        storage_paths,
        client.extractor,
        config.base_path,
        dropped_paths,
    )
    added = _paths(events, PartitionEventType.ADD)
    updated = _paths(events, PartitionEventType.UPDATE)
    dropped = _paths(events, PartitionEventType.DROP)
    client.add_partitions_to_table(ref, added)
    client.update_partitions_to_table(ref, updated)
    client.drop_partitions(ref, dropped)

    properties_updated = client.update_table_properties(ref, props)
    last_commit_time_updated = client.update_last_commit_time_synced(ref)

    return SyncResult(
        table=ref,
        created=created,
        schema_updated=schema_updated,
        comments_updated=comments_updated,
        added=tuple(added),
        updated=tuple(updated),
        dropped=tuple(dropped),
        properties_updated=properties_updated,
        last_commit_time_updated=last_commit_time_updated,
    )
