"""Storage schema to catalog column conversion.

Hudi writes an Avro schema with every commit. The catalog wants Hive-style
column types, with partition keys listed separately from regular columns.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from hudiglue.core.models import ColumnDef, FieldSchema, StorageSchema

DEFAULT_TYPE = "string"

_AVRO_TO_CATALOG = {
    "string": "string",
    "int": "int",
    "long": "bigint",
    "float": "float",
    "double": "double",
    "boolean": "boolean",
    "bytes": "binary",
    "fixed": "binary",
    "enum": "string",
    "date": "date",
}

_TIMESTAMP_TYPES = {
    "timestamp-micros",
    "timestamp-millis",
    "local-timestamp-micros",
    "local-timestamp-millis",
}

_PASSTHROUGH_PREFIXES = ("decimal(", "array<", "map<", "struct<")


def to_catalog_type(field_type: str, support_timestamp: bool = False) -> str:
    """
    Map a storage field type to a lower-cased catalog type.

    Timestamps are written as longs by Hudi; they are exposed as `timestamp`
    only when the query engines reading the catalog support it.
    """
    t = field_type.strip().lower()
    if t in _TIMESTAMP_TYPES:
        return "timestamp" if support_timestamp else "bigint"
    if t.startswith(_PASSTHROUGH_PREFIXES):
        return t
    return _AVRO_TO_CATALOG.get(t, DEFAULT_TYPE)


def schema_to_type_map(
    schema: StorageSchema, support_timestamp: bool = False
) -> dict[str, str]:
    """Return an ordered mapping of field name to catalog type."""
    return {f.name: to_catalog_type(f.type, support_timestamp) for f in schema.fields}


def partition_key_type(type_map: Mapping[str, str], key: str) -> str:
    """Return the catalog type of `key`, defaulting to string when absent."""
    return type_map.get(key, DEFAULT_TYPE)


def columns_from_schema(
    type_map: Mapping[str, str], partition_fields: Iterable[str]
) -> tuple[ColumnDef, ...]:
    """Non-partition columns; partition keys are listed separately in the catalog."""
    excluded = set(partition_fields)
    return tuple(
        ColumnDef(name=name, type=partition_key_type(type_map, name).lower(), comment="")
        for name in type_map
        if name not in excluded
    )


def partition_columns(
    type_map: Mapping[str, str], partition_fields: Iterable[str]
) -> tuple[ColumnDef, ...]:
    """Partition key columns in configured order."""
    return tuple(
        ColumnDef(name=key, type=partition_key_type(type_map, key).lower(), comment="")
        for key in partition_fields
    )


def _avro_type_name(avro_type: Any) -> str:
    if isinstance(avro_type, list):
        # Nullable unions: ["null", X]
        non_null = [t for t in avro_type if t != "null"]
        return _avro_type_name(non_null[0]) if len(non_null) == 1 else DEFAULT_TYPE
    if isinstance(avro_type, Mapping):
        logical = avro_type.get("logicalType")
        if logical == "decimal":
            return f"decimal({avro_type.get('precision', 10)},{avro_type.get('scale', 0)})"
        if logical:
            return str(logical)
        base = avro_type.get("type")
        if base == "array":
            return f"array<{to_catalog_type(_avro_type_name(avro_type.get('items')))}>"
        if base == "map":
            return f"map<string,{to_catalog_type(_avro_type_name(avro_type.get('values')))}>"
        if base == "record":
            inner = ",".join(
                f"{f['name']}:{to_catalog_type(_avro_type_name(f['type']))}"
                for f in avro_type.get("fields", [])
            )
            return f"struct<{inner}>"
        return _avro_type_name(base)
    return str(avro_type)


def parse_avro_schema(text: str) -> StorageSchema:
    """Parse an Avro record schema (JSON text) into a StorageSchema."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid Avro schema: {exc}") from exc
    if not isinstance(raw, Mapping) or raw.get("type") != "record":
        raise ValueError("Avro schema must be a record.")
    fields = tuple(
        FieldSchema(name=f["name"], type=_avro_type_name(f["type"]), comment=f.get("doc"))
        for f in raw.get("fields", [])
    )
    return StorageSchema(fields=fields, doc=raw.get("doc"))
