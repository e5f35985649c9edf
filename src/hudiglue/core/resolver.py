"""Storage-side table metadata.

The reconcilers only need two things from storage: the current table schema
and the latest completed commit. `LocalTableMetadataResolver` reads both
from a Hudi table on a local or mounted filesystem.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Protocol

from hudiglue.core.models import FieldSchema, Instant, StorageSchema
from hudiglue.core.schema import parse_avro_schema

logger = logging.getLogger(__name__)

METAFOLDER_NAME = ".hoodie"
COMMIT_ACTIONS = ("commit", "deltacommit", "replacecommit")
HOODIE_META_COLUMNS = (
    "_hoodie_commit_time",
    "_hoodie_commit_seqno",
    "_hoodie_record_key",
    "_hoodie_partition_path",
    "_hoodie_file_name",
)

_INSTANT_RE = re.compile(
    r"^(?P<ts>\d+)\.(?P<action>" + "|".join(COMMIT_ACTIONS) + r")$"
)


class TableMetadataResolver(Protocol):
    """Interface for reading schema and timeline state from storage."""

    base_path: str

    def get_table_avro_schema(self, include_metadata_fields: bool = True) -> StorageSchema:
        """Return the latest table schema."""
        ...

    def last_instant(self) -> Instant | None:
        """Return the latest completed commit, or None for an empty timeline."""
        ...


class LocalTableMetadataResolver:
    """Read a Hudi table's timeline and schema from the filesystem."""

    def __init__(self, base_path: str | Path):
        self.base_path = str(base_path).rstrip("/")
        self._root = Path(self.base_path)
        self._meta = self._root / METAFOLDER_NAME

    def completed_instants(self) -> list[Instant]:
        """Completed commit instants, oldest first."""
        if not self._meta.is_dir():
            raise FileNotFoundError(f"Not a Hudi table (missing {self._meta})")
        instants = []
        for p in self._meta.iterdir():
            m = _INSTANT_RE.match(p.name)
            if m and p.is_file():
                instants.append(Instant(timestamp=m["ts"], action=m["action"]))
        return sorted(instants, key=lambda i: i.timestamp)

    def last_instant(self) -> Instant | None:
        instants = self.completed_instants()
        return instants[-1] if instants else None

    def get_table_avro_schema(self, include_metadata_fields: bool = True) -> StorageSchema:
        """
        Return the schema recorded by the latest commit carrying one.

        Commit files are JSON; writers store the Avro schema under
        `extraMetadata.schema`.
        """
        for instant in reversed(self.completed_instants()):
            path = self._meta / f"{instant.timestamp}.{instant.action}"
            try:
                payload = json.loads(path.read_text(encoding="utf-8") or "{}")
            except json.JSONDecodeError:
                logger.debug("Skipping unreadable commit file %s", path)
                continue
            schema_text = (payload.get("extraMetadata") or {}).get("schema")
            if not schema_text:
                continue
            schema = parse_avro_schema(schema_text)
            if include_metadata_fields:
                return self._with_meta_fields(schema)
            return StorageSchema(
                fields=tuple(f for f in schema.fields if f.name not in HOODIE_META_COLUMNS),
                doc=schema.doc,
            )
        raise ValueError(f"No table schema found in commits under {self._meta}")

    @staticmethod
    def _with_meta_fields(schema: StorageSchema) -> StorageSchema:
        present = {f.name for f in schema.fields}
        meta = tuple(
            FieldSchema(name=n, type="string") for n in HOODIE_META_COLUMNS if n not in present
        )
        return StorageSchema(fields=meta + schema.fields, doc=schema.doc)

    def list_partition_paths(self, depth: int) -> list[str]:
        """
        Relative partition paths `depth` directory levels below the base path.

        Hidden directories (the `.hoodie` metafolder among them) are skipped.
        A depth of 0 means the table is not partitioned.
        """
        if depth <= 0:
            return []
        level = [self._root]
        for _ in range(depth):
            level = [
                child
                for parent in level
                for child in sorted(parent.iterdir())
                if child.is_dir() and not child.name.startswith((".", "_"))
            ]
        return [p.relative_to(self._root).as_posix() for p in level]
