"""Table parameter bookkeeping.

Sync state (the last synced commit time, feature flags) lives in the
table's parameter bag. Updates are merged into the existing bag, never
replace it, and are skipped when the catalog already holds every value.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Mapping

from hudiglue.core.config import GlueSyncConfig
from hudiglue.core.errors import (
    CatalogSyncError,
    CatalogTransportError,
    UnsupportedOperationError,
)
from hudiglue.core.models import CatalogTableRef, contains_all, merge_parameters
from hudiglue.core.resolver import TableMetadataResolver
from hudiglue.core.tables import ENABLE_MDT_LISTING, TableReconciler
from hudiglue.core.transport import CatalogTransport

logger = logging.getLogger(__name__)

LAST_COMMIT_TIME_SYNC = "last_commit_time_sync"


class PropertyManager:
    """Read and merge table parameters, including last-sync bookkeeping."""

    def __init__(
        self,
        transport: CatalogTransport,
        config: GlueSyncConfig,
        tables: TableReconciler,
        resolver: TableMetadataResolver | None = None,
    ):
        self.transport = transport
        self.config = config
        self.tables = tables
        self.resolver = resolver

    def update_table_properties(
        self, ref: CatalogTableRef, props: Mapping[str, str]
    ) -> bool:
        """Merge `props` plus the metadata-listing flag into the table parameters."""
        merged = dict(props)
        merged[ENABLE_MDT_LISTING] = self.config.metadata_listing_flag
        return self.update_table_parameters(ref, merged, self.config.skip_table_archive)

    def update_table_parameters(
        self,
        ref: CatalogTableRef,
        updates: Mapping[str, str],
        skip_archive: bool,
    ) -> bool:
        """
        Merge `updates` over the table's current parameters.

        Returns:
            True if an update was sent, False if `updates` was empty or
            already fully present with the same values.
        """
        if not updates:
            return False

        table = self.tables.get_table(ref)
        if contains_all(table.parameters, updates):
            logger.debug("Parameters of %s already up to date", ref)
            return False

        now = datetime.now(timezone.utc)
        updated = replace(
            table,
            parameters=merge_parameters(table.parameters, updates),
            last_access_time=now,
            last_analyzed_time=now,
        )
        try:
            self.transport.update_table(ref, updated, skip_archive=skip_archive)
        except CatalogTransportError as exc:
            raise CatalogSyncError(
                f"Fail to update params for table {ref}: {dict(updates)}", ref=ref
            ) from exc
        return True

    def get_table_properties(self, ref: CatalogTableRef) -> dict[str, str]:
        return dict(self.tables.get_table(ref).parameters)

    def get_last_commit_time_synced(self, ref: CatalogTableRef) -> str | None:
        return self.tables.get_table(ref).parameters.get(LAST_COMMIT_TIME_SYNC)

    def update_last_commit_time_synced(self, ref: CatalogTableRef) -> bool:
        """Stamp the latest completed commit time into the table parameters."""
        if self.resolver is None:
            raise CatalogSyncError("No storage metadata resolver configured", ref=ref)
        try:
            instant = self.resolver.last_instant()
        except OSError as exc:
            raise CatalogSyncError(
                f"Fail to read the commit timeline for {ref}", ref=ref
            ) from exc
        if instant is None:
            logger.warning("No commit in active timeline.")
            return False
        return self.update_table_parameters(
            ref, {LAST_COMMIT_TIME_SYNC: instant.timestamp}, self.config.skip_table_archive
        )

    def get_last_replicated_time(self, ref: CatalogTableRef) -> str | None:
        raise UnsupportedOperationError("get_last_replicated_time")

    def update_last_replicated_timestamp(self, ref: CatalogTableRef, timestamp: str) -> None:
        raise UnsupportedOperationError("update_last_replicated_timestamp")

    def delete_last_replicated_timestamp(self, ref: CatalogTableRef) -> None:
        raise UnsupportedOperationError("delete_last_replicated_timestamp")
