"""Partition-level reconciliation.

Callers decide which partition paths to add, update or drop; this module
turns those paths into catalog partitions and submits them through the
batch executor. It does no diffing of its own.
"""

from __future__ import annotations

import logging
from typing import Sequence

from hudiglue.core.batches import BatchExecutor, BatchOperation
from hudiglue.core.config import GlueSyncConfig
from hudiglue.core.errors import CatalogSyncError, CatalogTransportError
from hudiglue.core.models import CatalogTableRef, PartitionRecord
from hudiglue.core.partitions import PartitionValueExtractor, partition_location
from hudiglue.core.tables import TableReconciler
from hudiglue.core.transport import CatalogTransport

logger = logging.getLogger(__name__)


class PartitionReconciler:
    """Add, update, drop and list catalog partitions."""

    def __init__(
        self,
        transport: CatalogTransport,
        config: GlueSyncConfig,
        extractor: PartitionValueExtractor,
        executor: BatchExecutor,
        tables: TableReconciler,
    ):
        self.transport = transport
        self.config = config
        self.extractor = extractor
        self.executor = executor
        self.tables = tables

    def get_all_partitions(self, ref: CatalogTableRef) -> list[PartitionRecord]:
        """Drain the paginated partition listing."""
        try:
            return list(self.transport.list_partitions(ref))
        except CatalogTransportError as exc:
            raise CatalogSyncError(
                f"Failed to get all partitions for table {ref}", ref=ref
            ) from exc

    def _partition_records(
        self, ref: CatalogTableRef, paths: Sequence[str]
    ) -> list[PartitionRecord]:
        # One table read; each partition inherits a copy of its storage descriptor.
        storage = self.tables.get_table(ref).storage
        records = []
        for path in paths:
            location = partition_location(self.config.base_path, path)
            records.append(
                PartitionRecord(
                    values=tuple(self.extractor.extract_partition_values(path)),
                    location=location,
                    storage=storage.with_location(location),
                )
            )
        return records

    def add_partitions_to_table(self, ref: CatalogTableRef, paths: Sequence[str]) -> None:
        if not paths:
            logger.info("No partitions to add for %s", ref)
            return
        logger.info("Adding %d partition(s) in table %s", len(paths), ref)
        records = self._partition_records(ref, paths)
        self.executor.execute(ref, BatchOperation.ADD, records)

    def update_partitions_to_table(self, ref: CatalogTableRef, paths: Sequence[str]) -> None:
        if not paths:
            logger.info("No partitions to change for %s", ref)
            return
        logger.info("Updating %d partition(s) in table %s", len(paths), ref)
        records = self._partition_records(ref, paths)
        self.executor.execute(ref, BatchOperation.UPDATE, records)

    def drop_partitions(self, ref: CatalogTableRef, paths: Sequence[str]) -> None:
        if not paths:
            logger.info("No partitions to drop for %s", ref)
            return
        logger.info("Dropping %d partition(s) in table %s", len(paths), ref)
        values = [tuple(self.extractor.extract_partition_values(p)) for p in paths]
        self.executor.execute(ref, BatchOperation.DROP, values)
