from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from hudiglue.core.errors import AlreadyExistsError, EntityNotFoundError  # noqa: E402
from hudiglue.core.models import PartitionRecord  # noqa: E402


class InMemoryTransport:
    """Catalog transport stub keeping databases, tables and partitions in dicts."""

    def __init__(self):
        self.databases: set[str] = set()
        self.tables = {}
        self.partitions: dict = {}
        self.calls: list[tuple] = []
        # Per-call batch errors, consumed in order; missing entries mean "no errors".
        self.batch_errors: list[list] = []
        self.fail_with: dict[str, Exception] = {}
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_with:
            raise self.fail_with[name]

    def _next_errors(self) -> list:
        return self.batch_errors.pop(0) if self.batch_errors else []

    def get_table(self, ref):
        self.calls.append(("get_table", ref))
        self._maybe_fail("get_table")
        if ref not in self.tables:
            raise EntityNotFoundError(f"Table not found: {ref}")
        return self.tables[ref]

    def get_database(self, name):
        self.calls.append(("get_database", name))
        self._maybe_fail("get_database")
        if name not in self.databases:
            raise EntityNotFoundError(f"Database not found: {name}")

    def create_database(self, name, description=None):
        self.calls.append(("create_database", name, description))
        self._maybe_fail("create_database")
        if name in self.databases:
            raise AlreadyExistsError(name)
        self.databases.add(name)

    def create_table(self, ref, definition):
        self.calls.append(("create_table", ref, definition))
        self._maybe_fail("create_table")
        if ref in self.tables:
            raise AlreadyExistsError(str(ref))
        self.tables[ref] = definition

    def update_table(self, ref, definition, skip_archive=False):
        self.calls.append(("update_table", ref, definition, skip_archive))
        self._maybe_fail("update_table")
        self.tables[ref] = definition

    def list_partitions(self, ref):
        self.calls.append(("list_partitions", ref))
        self._maybe_fail("list_partitions")
        yield from self.partitions.get(ref, {}).values()

    def batch_add_partitions(self, ref, items):
        self.calls.append(("batch_add_partitions", ref, list(items)))
        self._maybe_fail("batch_add_partitions")
        errors = self._next_errors()
        failed = {e.values for e in errors}
        bucket = self.partitions.setdefault(ref, {})
        for record in items:
            if record.values not in failed and record.values not in bucket:
                bucket[record.values] = PartitionRecord(record.values, record.location)
        return errors

    def batch_update_partitions(self, ref, items):
        self.calls.append(("batch_update_partitions", ref, list(items)))
        self._maybe_fail("batch_update_partitions")
        errors = self._next_errors()
        bucket = self.partitions.setdefault(ref, {})
        for record in items:
            bucket[record.values] = PartitionRecord(record.values, record.location)
        return errors

    def batch_drop_partitions(self, ref, items):
        self.calls.append(("batch_drop_partitions", ref, list(items)))
        self._maybe_fail("batch_drop_partitions")
        errors = self._next_errors()
        bucket = self.partitions.setdefault(ref, {})
        for values in items:
            bucket.pop(tuple(values), None)
        return errors

    def close(self):
        self.closed = True

    def called(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


def write_hudi_table(base: Path, schema: dict, commits=("20240101000000",), partitions=()):
    """Lay out a minimal Hudi table: `.hoodie` commit files and partition dirs."""
    meta = base / ".hoodie"
    meta.mkdir(parents=True, exist_ok=True)
    for ts in commits:
        payload = {"extraMetadata": {"schema": json.dumps(schema)}}
        (meta / f"{ts}.commit").write_text(json.dumps(payload), encoding="utf-8")
    for rel in partitions:
        (base / rel).mkdir(parents=True, exist_ok=True)
    return base


TRIPS_SCHEMA = {
    "type": "record",
    "name": "trips",
    "doc": "Taxi trips",
    "fields": [
        {"name": "id", "type": "long", "doc": "trip id"},
        {"name": "rider", "type": ["null", "string"]},
        {"name": "ts", "type": {"type": "long", "logicalType": "timestamp-micros"}},
        {"name": "date", "type": "string"},
    ],
}
