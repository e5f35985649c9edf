"""Table-level reconciliation: existence, creation, schema and comments.

Every operation re-reads the remote table before acting. The catalog only
supports full-replace updates, so each update is the freshly read
definition with the delta applied and every other field resent as-is.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Mapping, Sequence

from hudiglue.core.config import GlueSyncConfig
from hudiglue.core.errors import (
    AlreadyExistsError,
    CatalogSyncError,
    CatalogTransportError,
    EntityNotFoundError,
)
from hudiglue.core.models import (
    CatalogTableRef,
    ColumnDef,
    FieldSchema,
    SerDeInfo,
    StorageDescriptor,
    StorageSchema,
    TableDefinition,
)
from hudiglue.core.partitions import s3a_to_s3
from hudiglue.core.resolver import TableMetadataResolver
from hudiglue.core.schema import (
    columns_from_schema,
    partition_columns,
    schema_to_type_map,
)
from hudiglue.core.transport import CatalogTransport

logger = logging.getLogger(__name__)

ENABLE_MDT_LISTING = "hudi.metadata-listing-enabled"
EXTERNAL_TABLE = "EXTERNAL_TABLE"
MANAGED_TABLE = "MANAGED_TABLE"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _with_comments(
    columns: Sequence[ColumnDef], comments: Mapping[str, str | None]
) -> tuple[ColumnDef, ...]:
    """Set each column's comment from `comments`; missing names clear the comment."""
    return tuple(replace(c, comment=comments.get(c.name)) for c in columns)


class TableReconciler:
    """Create and update catalog tables and databases."""

    def __init__(
        self,
        transport: CatalogTransport,
        config: GlueSyncConfig,
        resolver: TableMetadataResolver | None = None,
    ):
        self.transport = transport
        self.config = config
        self.resolver = resolver

    def get_table(self, ref: CatalogTableRef) -> TableDefinition:
        """Fetch the table; a missing table is fatal here."""
        try:
            return self.transport.get_table(ref)
        except EntityNotFoundError as exc:
            raise CatalogSyncError(f"Table not found: {ref}", ref=ref) from exc
        except CatalogTransportError as exc:
            raise CatalogSyncError(f"Fail to get table {ref}", ref=ref) from exc
        except ValueError as exc:
            raise CatalogSyncError(f"Invalid definition for table {ref}: {exc}", ref=ref) from exc

    def table_exists(self, ref: CatalogTableRef) -> bool:
        try:
            self.transport.get_table(ref)
        except EntityNotFoundError:
            logger.info("Table not found: %s", ref)
            return False
        except CatalogTransportError as exc:
            raise CatalogSyncError(f"Fail to get table: {ref}", ref=ref) from exc
        except ValueError as exc:
            raise CatalogSyncError(f"Invalid definition for table {ref}: {exc}", ref=ref) from exc
        return True

    def database_exists(self, name: str) -> bool:
        try:
            self.transport.get_database(name)
        except EntityNotFoundError:
            logger.info("Database not found: %s", name)
            return False
        except CatalogTransportError as exc:
            raise CatalogSyncError(
                f"Fail to check if database exists {name}", ref=name
            ) from exc
        return True

    def create_database(self, name: str) -> None:
        """Create the database unless it exists; a lost creation race is only a warning."""
        if self.database_exists(name):
            return
        try:
            self.transport.create_database(name, description="Automatically created by hudiglue")
            logger.info("Successfully created database in catalog: %s", name)
        except AlreadyExistsError:
            logger.warning("Catalog database %s already exists", name)
        except CatalogTransportError as exc:
            raise CatalogSyncError(f"Fail to create database {name}", ref=name) from exc

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
        """
        Create the table if it is absent.

        An existing table is left untouched, whatever its schema. Partition
        keys are the configured partition fields; every other schema field
        becomes a regular column.

        Args:
            ref: Table to create.
            storage_schema: Current storage-side schema.
            input_format: Hadoop input format class.
            output_format: Hadoop output format class.
            serde_class: SerDe serialization library.
            serde_properties: SerDe parameters; `serialization.format=1` is added.
            table_properties: Extra table parameters, applied last.
        """
        if self.table_exists(ref):
            return

        params: dict[str, str] = {}
        if not self.config.create_managed_table:
            params["EXTERNAL"] = "TRUE"
        params[ENABLE_MDT_LISTING] = self.config.metadata_listing_flag
        params.update(table_properties or {})

        serde_params = dict(serde_properties or {})
        serde_params["serialization.format"] = "1"

        type_map = schema_to_type_map(storage_schema, self.config.support_timestamp_type)
        columns = columns_from_schema(type_map, self.config.partition_fields)
        now = _now()
        definition = TableDefinition(
            name=ref.table_name,
            columns=columns,
            partition_keys=partition_columns(type_map, self.config.partition_fields),
            storage=StorageDescriptor(
                columns=columns,
                location=s3a_to_s3(self.config.base_path),
                input_format=input_format,
                output_format=output_format,
                serde_info=SerDeInfo(
                    serialization_library=serde_class, parameters=serde_params
                ),
            ),
            parameters=params,
            table_type=MANAGED_TABLE if self.config.create_managed_table else EXTERNAL_TABLE,
            last_access_time=now,
            last_analyzed_time=now,
        )

        try:
            self.transport.create_table(ref, definition)
            logger.info("Created table %s", ref)
        except AlreadyExistsError:
            logger.warning("Table %s already exists.", ref)
        except CatalogTransportError as exc:
            raise CatalogSyncError(f"Fail to create {ref}", ref=ref) from exc

    def update_table_schema(self, ref: CatalogTableRef, new_schema: StorageSchema) -> None:
        """
        Replace the table's regular columns with those of `new_schema`.

        Partition keys are kept as they are, and existing partitions keep
        their own column lists (the change is not cascaded). Fields named
        like one of the table's partition keys never become columns, and
        columns that survive keep their remote parameters.
        """
        table = self.get_table(ref)
        type_map = schema_to_type_map(new_schema, self.config.support_timestamp_type)
        excluded = set(self.config.partition_fields) | {k.name for k in table.partition_keys}
        previous = {c.name: c for c in table.columns}
        columns = tuple(
            replace(c, parameters=previous[c.name].parameters) if c.name in previous else c
            for c in columns_from_schema(type_map, excluded)
        )
        now = _now()
        try:
            updated = replace(table, columns=columns, last_access_time=now, last_analyzed_time=now)
        except ValueError as exc:
            raise CatalogSyncError(f"Invalid definition for table {ref}: {exc}", ref=ref) from exc
        try:
            self.transport.update_table(ref, updated, skip_archive=self.config.skip_table_archive)
        except CatalogTransportError as exc:
            raise CatalogSyncError(f"Fail to update definition for table {ref}", ref=ref) from exc

    def get_storage_schema(self) -> StorageSchema:
        if self.resolver is None:
            raise CatalogSyncError("No storage metadata resolver configured")
        try:
            return self.resolver.get_table_avro_schema(True)
        except (OSError, ValueError) as exc:
            raise CatalogSyncError("Failed to get table schema from storage") from exc

    def get_storage_field_schemas(self) -> list[FieldSchema]:
        return list(self.get_storage_schema().fields)

    def update_table_comments(
        self,
        ref: CatalogTableRef,
        from_catalog: Sequence[FieldSchema],
        from_storage: Sequence[FieldSchema],
    ) -> bool:
        """
        Copy column comments from storage onto the catalog table.

        `from_catalog` is not consulted; the table is re-fetched instead.

        Returns:
            True if an update was sent, False if the comments already matched.
        """
        table = self.get_table(ref)
        comments = {f.name: f.comment for f in from_storage}
        columns = _with_comments(table.columns, comments)
        partition_keys = _with_comments(table.partition_keys, comments)
        description = self.get_storage_schema().doc

        current = self.get_table(ref)
        if current.columns == columns and current.partition_keys == partition_keys:
            logger.debug("Column comments of %s are up to date", ref)
            return False

        now = _now()
        updated = replace(
            current,
            columns=columns,
            partition_keys=partition_keys,
            description=description,
            last_access_time=now,
            last_analyzed_time=now,
        )
        try:
            self.transport.update_table(ref, updated, skip_archive=self.config.skip_table_archive)
        except CatalogTransportError as exc:
            raise CatalogSyncError(f"Fail to update comments for table {ref}", ref=ref) from exc
        return True

    def get_metastore_schema(self, ref: CatalogTableRef) -> dict[str, str]:
        """Column name to upper-cased type, regular columns then partition keys."""
        table = self.get_table(ref)
        schema = {c.name: c.type.upper() for c in table.columns}
        for key in table.partition_keys:
            if key.name in schema:
                logger.warning(
                    "Partition key %s of %s shadows a column of the same name", key.name, ref
                )
            schema[key.name] = key.type.upper()
        return schema
