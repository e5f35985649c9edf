"""Catalog sync client.

`GlueCatalogSyncClient` is the surface sync drivers call. It wires the
table, partition and property reconcilers to one transport and one
configuration and owns the transport's lifetime.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from hudiglue.core.adapters.glue import GlueCatalogAdapter
from hudiglue.core.auth import get_client
from hudiglue.core.batches import BatchExecutor
from hudiglue.core.config import GlueSyncConfig
from hudiglue.core.models import CatalogTableRef, FieldSchema, PartitionRecord, StorageSchema
from hudiglue.core.partition_sync import PartitionReconciler
from hudiglue.core.partitions import MultiPartKeysValueExtractor, PartitionValueExtractor
from hudiglue.core.properties import PropertyManager
from hudiglue.core.resolver import TableMetadataResolver
from hudiglue.core.tables import TableReconciler
from hudiglue.core.transport import CatalogTransport


class GlueCatalogSyncClient:
    """
    Reconcile one catalog database with Hudi tables on storage.

    Example:
        with GlueCatalogSyncClient.from_config(config, resolver) as client:
            ref = client.table_ref("trips")
            client.create_database(config.database_name)
            client.add_partitions_to_table(ref, ["date=2024-01-01"])
    """

    def __init__(
        self,
        config: GlueSyncConfig,
        transport: CatalogTransport,
        resolver: TableMetadataResolver | None = None,
        extractor: PartitionValueExtractor | None = None,
        executor: BatchExecutor | None = None,
    ):
        self.config = config
        self.transport = transport
        self.resolver = resolver
        self.extractor = extractor or MultiPartKeysValueExtractor()
        self.executor = executor or BatchExecutor(
            transport,
            batch_size=config.batch_size,
            delay_seconds=config.batch_delay_seconds,
        )
        self.tables = TableReconciler(transport, config, resolver)
        self.partitions = PartitionReconciler(
            transport, config, self.extractor, self.executor, self.tables
        )
        self.properties = PropertyManager(transport, config, self.tables, resolver)

    @classmethod
    def from_config(
        cls,
        config: GlueSyncConfig,
        resolver: TableMetadataResolver | None = None,
        extractor: PartitionValueExtractor | None = None,
        catalog_id: str | None = None,
    ) -> GlueCatalogSyncClient:
        """Build a client talking to AWS Glue with credentials from `config`."""
        adapter = GlueCatalogAdapter(
            get_client(config.profile, config.region), catalog_id=catalog_id
        )
        return cls(config, adapter, resolver=resolver, extractor=extractor)

    def __enter__(self) -> GlueCatalogSyncClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self.transport.close()

    def table_ref(self, table_name: str) -> CatalogTableRef:
        return CatalogTableRef(self.config.database_name, table_name)

    # Tables and databases

    def database_exists(self, name: str) -> bool:
        return self.tables.database_exists(name)

    def create_database(self, name: str) -> None:
        self.tables.create_database(name)

    def table_exists(self, ref: CatalogTableRef) -> bool:
        return self.tables.table_exists(ref)

    def create_table(
        self,
        ref: CatalogTableRef,
        storage_schema: StorageSchema,
        input_format: str,
        output_format: str,
        serde_class: str,
        serde_properties: Mapping[str, str] | None = None,
        table_properties: Mapping[str, str] | None = None,
    ) -> None:
        self.tables.create_table(
            ref,
            storage_schema,
            input_format,
            output_format,
            serde_class,
            serde_properties,
            table_properties,
        )

    def get_metastore_schema(self, ref: CatalogTableRef) -> dict[str, str]:
        return self.tables.get_metastore_schema(ref)

    def update_table_schema(self, ref: CatalogTableRef, new_schema: StorageSchema) -> None:
        self.tables.update_table_schema(ref, new_schema)

    def get_storage_field_schemas(self) -> list[FieldSchema]:
        return self.tables.get_storage_field_schemas()

    def update_table_comments(
        self,
        ref: CatalogTableRef,
        from_catalog: Sequence[FieldSchema],
        from_storage: Sequence[FieldSchema],
    ) -> bool:
        return self.tables.update_table_comments(ref, from_catalog, from_storage)

    # Partitions

    def get_all_partitions(self, ref: CatalogTableRef) -> list[PartitionRecord]:
        return self.partitions.get_all_partitions(ref)

    def add_partitions_to_table(self, ref: CatalogTableRef, paths: Sequence[str]) -> None:
        self.partitions.add_partitions_to_table(ref, paths)

    def update_partitions_to_table(self, ref: CatalogTableRef, paths: Sequence[str]) -> None:
        self.partitions.update_partitions_to_table(ref, paths)

    def drop_partitions(self, ref: CatalogTableRef, paths: Sequence[str]) -> None:
        self.partitions.drop_partitions(ref, paths)

    # Properties and bookkeeping

    def get_table_properties(self, ref: CatalogTableRef) -> dict[str, str]:
        return self.properties.get_table_properties(ref)

    def update_table_properties(self, ref: CatalogTableRef, props: Mapping[str, str]) -> bool:
        return self.properties.update_table_properties(ref, props)

    def get_last_commit_time_synced(self, ref: CatalogTableRef) -> str | None:
        return self.properties.get_last_commit_time_synced(ref)

    def update_last_commit_time_synced(self, ref: CatalogTableRef) -> bool:
        return self.properties.update_last_commit_time_synced(ref)

    def get_last_replicated_time(self, ref: CatalogTableRef) -> str | None:
        return self.properties.get_last_replicated_time(ref)

    def update_last_replicated_timestamp(self, ref: CatalogTableRef, timestamp: str) -> None:
        self.properties.update_last_replicated_timestamp(ref, timestamp)

    def delete_last_replicated_timestamp(self, ref: CatalogTableRef) -> None:
        self.properties.delete_last_replicated_timestamp(ref)
