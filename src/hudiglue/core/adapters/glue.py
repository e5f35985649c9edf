from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from hudiglue.core.errors import (
    AlreadyExistsError,
    EntityNotFoundError,
    TransportError,
)
from hudiglue.core.models import (
    BatchError,
    CatalogTableRef,
    ColumnDef,
    PartitionRecord,
    SerDeInfo,
    StorageDescriptor,
    TableDefinition,
)

# TableInput / StorageDescriptor fields passed through untouched on update.
_TABLE_EXTRA_KEYS = (
    "Owner",
    "Retention",
    "ViewOriginalText",
    "ViewExpandedText",
    "TargetTable",
)
_SD_EXTRA_KEYS = (
    "AdditionalLocations",
    "Compressed",
    "NumberOfBuckets",
    "BucketColumns",
    "SortColumns",
    "Parameters",
    "SkewedInfo",
    "StoredAsSubDirectories",
    "SchemaReference",
)


def _columns_from_glue(raw: Sequence[Mapping[str, Any]] | None) -> tuple[ColumnDef, ...]:
    return tuple(
        ColumnDef(
            name=c["Name"],
            type=c.get("Type", "string"),
            comment=c.get("Comment"),
            parameters=dict(c.get("Parameters") or {}),
        )
        for c in raw or []
    )


def _columns_to_glue(columns: Sequence[ColumnDef]) -> list[dict[str, Any]]:
    out = []
    for c in columns:
        col: dict[str, Any] = {"Name": c.name, "Type": c.type}
        if c.comment is not None:
            col["Comment"] = c.comment
        if c.parameters:
            col["Parameters"] = dict(c.parameters)
        out.append(col)
    return out


def storage_from_glue(raw: Mapping[str, Any] | None) -> StorageDescriptor:
    """Convert a Glue StorageDescriptor dict into a StorageDescriptor."""
    raw = raw or {}
    serde = raw.get("SerdeInfo") or {}
    return StorageDescriptor(
        columns=_columns_from_glue(raw.get("Columns")),
        location=raw.get("Location"),
        input_format=raw.get("InputFormat"),
        output_format=raw.get("OutputFormat"),
        serde_info=SerDeInfo(
            serialization_library=serde.get("SerializationLibrary"),
            parameters=dict(serde.get("Parameters") or {}),
            name=serde.get("Name"),
        ),
        extra={k: raw[k] for k in _SD_EXTRA_KEYS if k in raw},
    )


def storage_to_glue(sd: StorageDescriptor) -> dict[str, Any]:
    """Convert a StorageDescriptor into the Glue request shape."""
    out: dict[str, Any] = dict(sd.extra)
    out["Columns"] = _columns_to_glue(sd.columns)
    if sd.location is not None:
        out["Location"] = sd.location
    if sd.input_format is not None:
        out["InputFormat"] = sd.input_format
    if sd.output_format is not None:
        out["OutputFormat"] = sd.output_format
    serde: dict[str, Any] = {"Parameters": dict(sd.serde_info.parameters)}
    if sd.serde_info.serialization_library is not None:
        serde["SerializationLibrary"] = sd.serde_info.serialization_library
    if sd.serde_info.name is not None:
        serde["Name"] = sd.serde_info.name
    out["SerdeInfo"] = serde
    return out


def table_from_glue(raw: Mapping[str, Any]) -> TableDefinition:
    """Convert a Glue Table dict into a TableDefinition."""
    storage = storage_from_glue(raw.get("StorageDescriptor"))
    return TableDefinition(
        name=raw["Name"],
        columns=storage.columns,
        partition_keys=_columns_from_glue(raw.get("PartitionKeys")),
        storage=storage,
        parameters=dict(raw.get("Parameters") or {}),
        table_type=raw.get("TableType"),
        description=raw.get("Description"),
        last_access_time=raw.get("LastAccessTime"),
        last_analyzed_time=raw.get("LastAnalyzedTime"),
        extra={k: raw[k] for k in _TABLE_EXTRA_KEYS if k in raw},
    )


def table_to_glue(definition: TableDefinition) -> dict[str, Any]:
    """Convert a TableDefinition into a Glue TableInput."""
    out: dict[str, Any] = dict(definition.extra)
    out.update(
        {
            "Name": definition.name,
            "StorageDescriptor": storage_to_glue(definition.storage),
            "PartitionKeys": _columns_to_glue(definition.partition_keys),
            "Parameters": dict(definition.parameters),
        }
    )
    if definition.table_type is not None:
        out["TableType"] = definition.table_type
    if definition.description is not None:
        out["Description"] = definition.description
    if definition.last_access_time is not None:
        out["LastAccessTime"] = definition.last_access_time
    if definition.last_analyzed_time is not None:
        out["LastAnalyzedTime"] = definition.last_analyzed_time
    return out


def _partition_input(record: PartitionRecord) -> dict[str, Any]:
    storage = record.storage or StorageDescriptor()
    if record.location is not None:
        storage = storage.with_location(record.location)
    return {"Values": list(record.values), "StorageDescriptor": storage_to_glue(storage)}


def _batch_errors(
    raw_errors: Sequence[Mapping[str, Any]] | None,
    values: Sequence[tuple[str, ...]],
    values_key: str,
) -> list[BatchError]:
    index = {v: i for i, v in enumerate(values)}
    errors = []
    for e in raw_errors or []:
        raw_values = e.get(values_key) or []
        if isinstance(raw_values, Mapping):
            raw_values = raw_values.get("Values") or []
        item_values = tuple(raw_values)
        detail = e.get("ErrorDetail") or {}
        errors.append(
            BatchError(
                item_index=index.get(item_values),
                error_code=detail.get("ErrorCode", "Unknown"),
                message=detail.get("ErrorMessage", ""),
                values=item_values,
            )
        )
    return errors


class GlueCatalogAdapter:
    """Adapter around the boto3 AWS Glue client (databases, tables, partitions)."""

    def __init__(self, client, catalog_id: str | None = None) -> None:
        self.client = client
        self.catalog_id = catalog_id

    def _call(self, operation: str, **kwargs) -> dict[str, Any]:
        """Invoke a Glue API and translate botocore failures into transport errors."""
        if self.catalog_id:
            kwargs["CatalogId"] = self.catalog_id
        try:
            return getattr(self.client, operation)(**kwargs)
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = error.get("Code", "Unknown")
            message = error.get("Message", str(exc))
            if code == "EntityNotFoundException":
                raise EntityNotFoundError(message) from exc
            if code == "AlreadyExistsException":
                raise AlreadyExistsError(message) from exc
            raise TransportError(f"{operation} failed ({code}): {message}", code) from exc
        except BotoCoreError as exc:
            raise TransportError(f"{operation} failed: {exc}") from exc

    def get_table(self, ref: CatalogTableRef) -> TableDefinition:
        resp = self._call("get_table", DatabaseName=ref.database_name, Name=ref.table_name)
        table = resp.get("Table")
        if not table:
            raise EntityNotFoundError(f"Table not found: {ref}")
        return table_from_glue(table)

    def get_database(self, name: str) -> None:
        resp = self._call("get_database", Name=name)
        if not resp.get("Database"):
            raise EntityNotFoundError(f"Database not found: {name}")

    def create_database(self, name: str, description: str | None = None) -> None:
        database_input: dict[str, Any] = {"Name": name}
        if description:
            database_input["Description"] = description
        self._call("create_database", DatabaseInput=database_input)

    def create_table(self, ref: CatalogTableRef, definition: TableDefinition) -> None:
        self._call(
            "create_table",
            DatabaseName=ref.database_name,
            TableInput=table_to_glue(definition),
        )

    def update_table(
        self,
        ref: CatalogTableRef,
        definition: TableDefinition,
        skip_archive: bool = False,
    ) -> None:
        self._call(
            "update_table",
            DatabaseName=ref.database_name,
            TableInput=table_to_glue(definition),
            SkipArchive=skip_archive,
        )

    def list_partitions(self, ref: CatalogTableRef) -> Iterator[PartitionRecord]:
        """Yield partitions page by page until Glue stops returning NextToken."""
        next_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {
                "DatabaseName": ref.database_name,
                "TableName": ref.table_name,
            }
            if next_token:
                kwargs["NextToken"] = next_token
            resp = self._call("get_partitions", **kwargs)
            for p in resp.get("Partitions", []):
                yield PartitionRecord(
                    values=tuple(p.get("Values", [])),
                    location=(p.get("StorageDescriptor") or {}).get("Location"),
                    storage=storage_from_glue(p.get("StorageDescriptor")),
                )
            next_token = resp.get("NextToken")
            if not next_token:
                return

    def batch_add_partitions(
        self, ref: CatalogTableRef, items: Sequence[PartitionRecord]
    ) -> list[BatchError]:
        resp = self._call(
            "batch_create_partition",
            DatabaseName=ref.database_name,
            TableName=ref.table_name,
            PartitionInputList=[_partition_input(r) for r in items],
        )
        return _batch_errors(resp.get("Errors"), [r.values for r in items], "PartitionValues")

    def batch_update_partitions(
        self, ref: CatalogTableRef, items: Sequence[PartitionRecord]
    ) -> list[BatchError]:
        resp = self._call(
            "batch_update_partition",
            DatabaseName=ref.database_name,
            TableName=ref.table_name,
            Entries=[
                {"PartitionValueList": list(r.values), "PartitionInput": _partition_input(r)}
                for r in items
            ],
        )
        return _batch_errors(
            resp.get("Errors"), [r.values for r in items], "PartitionValueList"
        )

    def batch_drop_partitions(
        self, ref: CatalogTableRef, items: Sequence[tuple[str, ...]]
    ) -> list[BatchError]:
        values = [tuple(v) for v in items]
        resp = self._call(
            "batch_delete_partition",
            DatabaseName=ref.database_name,
            TableName=ref.table_name,
            PartitionsToDelete=[{"Values": list(v)} for v in values],
        )
        return _batch_errors(resp.get("Errors"), values, "PartitionValues")

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.client.close()
