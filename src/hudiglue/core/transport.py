"""Catalog transport interface.

Reconcilers talk to the remote catalog only through this protocol, so a
different catalog backend can be substituted without touching them.
Implementations raise `EntityNotFoundError`, `AlreadyExistsError` or
`TransportError` from `hudiglue.core.errors`.
"""

from __future__ import annotations

from typing import Iterator, Protocol, Sequence

from hudiglue.core.models import (
    BatchError,
    CatalogTableRef,
    PartitionRecord,
    TableDefinition,
)


class CatalogTransport(Protocol):
    """Interface for table, database and partition CRUD on a catalog."""

    def get_table(self, ref: CatalogTableRef) -> TableDefinition:
        """Return the table definition or raise EntityNotFoundError."""
        ...

    def get_database(self, name: str) -> None:
        """Return if the database exists, raise EntityNotFoundError otherwise."""
        ...

    def create_database(self, name: str, description: str | None = None) -> None:
        """Create a database; raises AlreadyExistsError on a lost race."""
        ...

    def create_table(self, ref: CatalogTableRef, definition: TableDefinition) -> None:
        """Create a table; raises AlreadyExistsError on a lost race."""
        ...

    def update_table(
        self,
        ref: CatalogTableRef,
        definition: TableDefinition,
        skip_archive: bool = False,
    ) -> None:
        """Replace the whole table definition."""
        ...

    def list_partitions(self, ref: CatalogTableRef) -> Iterator[PartitionRecord]:
        """Lazily yield every partition, following continuation tokens."""
        ...

    def batch_add_partitions(
        self,
        ref: CatalogTableRef,
        items: Sequence[PartitionRecord],
    ) -> list[BatchError]:
        """Create partitions; returns per-item errors (possibly empty)."""
        ...

    def batch_update_partitions(
        self,
        ref: CatalogTableRef,
        items: Sequence[PartitionRecord],
    ) -> list[BatchError]:
        """Replace partitions addressed by their values; returns per-item errors."""
        ...

    def batch_drop_partitions(
        self,
        ref: CatalogTableRef,
        items: Sequence[tuple[str, ...]],
    ) -> list[BatchError]:
        """Delete partitions by their values; returns per-item errors."""
        ...

    def close(self) -> None:
        """Release transport resources."""
        ...
