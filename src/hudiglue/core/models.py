"""Core domain models for catalog reconciliation.

These models describe the catalog-side view of a Hudi table (table
definition, columns, partitions) and the storage-side view (schema fields,
timeline instants) in a simple, immutable form. They are intentionally free
of boto3 types so reconcilers and tests never depend on the wire shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Mapping

ALREADY_EXISTS_CODE = "AlreadyExistsException"


@dataclass(frozen=True)
class CatalogTableRef:
    """Identifies a table in the remote catalog."""

    database_name: str
    table_name: str

    def __str__(self) -> str:
        return f"{self.database_name}.{self.table_name}"


@dataclass(frozen=True)
class ColumnDef:
    """
    A single catalog column.

    Attributes:
        name: Column name.
        type: Lower-cased catalog type name (e.g. `bigint`, `string`).
        comment: Optional column comment. None means "no comment".
        parameters: Remote column parameters, resent untouched on update.
            Not part of equality.
    """

    name: str
    type: str
    comment: str | None = None
    parameters: Mapping[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SerDeInfo:
    """Serialization library and its parameter bag."""

    serialization_library: str | None = None
    parameters: Mapping[str, str] = field(default_factory=dict)
    name: str | None = None


@dataclass(frozen=True)
class StorageDescriptor:
    """
    Physical storage settings shared by a table and its partitions.

    `extra` holds remote storage-descriptor fields this package does not
    interpret; they are resent untouched on every full-replace update.
    """

    columns: tuple[ColumnDef, ...] = ()
    location: str | None = None
    input_format: str | None = None
    output_format: str | None = None
    serde_info: SerDeInfo = field(default_factory=SerDeInfo)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def with_location(self, location: str) -> StorageDescriptor:
        """Return a copy of this descriptor pointing at another location."""
        return replace(self, location=location)


@dataclass(frozen=True)
class TableDefinition:
    """
    Full definition of a catalog table.

    The remote API only supports whole-definition replacement, so every
    update is built from a freshly read definition plus the deltas.

    Attributes:
        name: Table name.
        columns: Non-partition columns, in order.
        partition_keys: Partition key columns, in order.
        storage: Storage descriptor (location, formats, SerDe).
        parameters: Table parameter bag.
        table_type: e.g. `EXTERNAL_TABLE` or `MANAGED_TABLE`.
        description: Optional table description.
        last_access_time: Last access time reported or sent.
        last_analyzed_time: Last analyzed time reported or sent.
        extra: Remote table fields not interpreted here (owner, retention, ...).
    """

    name: str
    columns: tuple[ColumnDef, ...] = ()
    partition_keys: tuple[ColumnDef, ...] = ()
    storage: StorageDescriptor = field(default_factory=StorageDescriptor)
    parameters: Mapping[str, str] = field(default_factory=dict)
    table_type: str | None = None
    description: str | None = None
    last_access_time: datetime | None = None
    last_analyzed_time: datetime | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        overlap = {c.name for c in self.columns} & {
            k.name for k in self.partition_keys
        }
        if overlap:
            raise ValueError(
                f"Columns cannot also be partition keys: {sorted(overlap)}"
            )
        # Columns live on the storage descriptor in the catalog; keep both in sync.
        if self.storage.columns != self.columns:
            object.__setattr__(
                self, "storage", replace(self.storage, columns=self.columns)
            )

    @property
    def storage_location(self) -> str | None:
        return self.storage.location

    @property
    def input_format(self) -> str | None:
        return self.storage.input_format

    @property
    def output_format(self) -> str | None:
        return self.storage.output_format

    @property
    def serde_class(self) -> str | None:
        return self.storage.serde_info.serialization_library

    @property
    def serde_properties(self) -> Mapping[str, str]:
        return self.storage.serde_info.parameters


@dataclass(frozen=True)
class PartitionRecord:
    """
    A catalog partition; `values` is the natural key within a table.

    `storage` is the full descriptor sent on add/update. It is not part of
    equality, so records read back from the catalog compare by values and
    location only.
    """

    values: tuple[str, ...]
    location: str | None = None
    storage: StorageDescriptor | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BatchError:
    """
    A per-item error returned by a batch partition mutation.

    Attributes:
        item_index: Position of the failing item inside its batch, if known.
        error_code: Remote error code (e.g. `AlreadyExistsException`).
        message: Remote error message.
        values: Partition values of the failing item.
    """

    item_index: int | None
    error_code: str
    message: str = ""
    values: tuple[str, ...] = ()

    @property
    def is_already_exists(self) -> bool:
        return self.error_code == ALREADY_EXISTS_CODE


@dataclass(frozen=True)
class FieldSchema:
    """A top-level field of the storage-side schema."""

    name: str
    type: str
    comment: str | None = None


@dataclass(frozen=True)
class StorageSchema:
    """Storage-side table schema with its top-level description."""

    fields: tuple[FieldSchema, ...] = ()
    doc: str | None = None


@dataclass(frozen=True)
class Instant:
    """A completed instant on the storage layer's active timeline."""

    timestamp: str
    action: str = "commit"


def merge_parameters(
    current: Mapping[str, str], updates: Mapping[str, str]
) -> dict[str, str]:
    """Left-biased union: keys in `updates` win, other current keys are kept."""
    merged = dict(current)
    merged.update(updates)
    return merged


def contains_all(current: Mapping[str, str], updates: Mapping[str, str]) -> bool:
    """Return True if every key/value in `updates` is already in `current`."""
    return all(k in current and current[k] == v for k, v in updates.items())
