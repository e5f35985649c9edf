"""Sync configuration.

Configuration comes from a Hudi-style properties file (the same keys the
Hudi writers use for meta sync), optionally overridden by environment
variables and CLI options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping

from hudiglue.core.batches import BATCH_REQUEST_SLEEP_SECONDS, MAX_BATCH_SIZE

logger = logging.getLogger(__name__)

DATABASE_KEY = "hoodie.datasource.hive_sync.database"
TABLE_KEY = "hoodie.datasource.hive_sync.table"
BASE_PATH_KEY = "hoodie.datasource.meta.sync.base.path"
PARTITION_FIELDS_KEY = "hoodie.datasource.hive_sync.partition_fields"
CREATE_MANAGED_TABLE_KEY = "hoodie.datasource.hive_sync.create_managed_table"
SKIP_TABLE_ARCHIVE_KEY = "hoodie.datasource.meta.sync.glue.skip_table_archive"
METADATA_FILE_LISTING_KEY = "hoodie.datasource.meta.sync.glue.metadata_file_listing"
SUPPORT_TIMESTAMP_KEY = "hoodie.datasource.hive_sync.support_timestamp"

DEFAULT_DATABASE = "default"

_BATCH_DELAY_ENV = "HUDIGLUE_BATCH_DELAY"
_BATCH_SIZE_ENV = "HUDIGLUE_BATCH_SIZE"
_REGION_ENV = "AWS_REGION"

_TRUE = {"1", "true", "yes", "on"}


def _as_bool(raw: str | bool | None, default: bool = False) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return raw.strip().lower() in _TRUE


def _split(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class GlueSyncConfig:
    """
    Settings for one sync session against one catalog database.

    Attributes:
        database_name: Catalog database to sync into.
        base_path: Table base path on storage (partition locations hang off it).
        table_name: Default table name, if configured.
        partition_fields: Ordered partition key names.
        create_managed_table: Create MANAGED_TABLE instead of EXTERNAL_TABLE.
        skip_table_archive: Ask the catalog not to archive old table versions.
        metadata_file_listing: Advertise Hudi metadata-table file listing.
        support_timestamp_type: Expose timestamp fields as `timestamp`.
        region: AWS region for the Glue client.
        profile: AWS profile for the Glue client.
        batch_size: Items per batch partition call (at most 100).
        batch_delay_seconds: Pause after each batch call.
    """

    database_name: str = DEFAULT_DATABASE
    base_path: str = ""
    table_name: str | None = None
    partition_fields: tuple[str, ...] = field(default_factory=tuple)
    create_managed_table: bool = False
    skip_table_archive: bool = True
    metadata_file_listing: bool = False
    support_timestamp_type: bool = False
    region: str | None = None
    profile: str | None = None
    batch_size: int = MAX_BATCH_SIZE
    batch_delay_seconds: float = BATCH_REQUEST_SLEEP_SECONDS

    @property
    def metadata_listing_flag(self) -> str:
        """Value of the metadata-listing table parameter (`TRUE`/`FALSE`)."""
        return str(self.metadata_file_listing).upper()

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> GlueSyncConfig:
        """Build a config from Hudi meta-sync property keys."""
        return cls(
            database_name=props.get(DATABASE_KEY) or DEFAULT_DATABASE,
            base_path=props.get(BASE_PATH_KEY, ""),
            table_name=props.get(TABLE_KEY) or None,
            partition_fields=_split(props.get(PARTITION_FIELDS_KEY)),
            create_managed_table=_as_bool(props.get(CREATE_MANAGED_TABLE_KEY)),
            skip_table_archive=_as_bool(props.get(SKIP_TABLE_ARCHIVE_KEY), True),
            metadata_file_listing=_as_bool(props.get(METADATA_FILE_LISTING_KEY)),
            support_timestamp_type=_as_bool(props.get(SUPPORT_TIMESTAMP_KEY)),
        ).with_env()

    def with_env(self) -> GlueSyncConfig:
        """Apply environment overrides, ignoring malformed values."""
        changes: dict[str, object] = {}

        raw_delay = os.getenv(_BATCH_DELAY_ENV)
        if raw_delay is not None:
            try:
                changes["batch_delay_seconds"] = max(float(raw_delay), 0.0)
            except ValueError:
                logger.warning("Ignoring malformed %s=%r", _BATCH_DELAY_ENV, raw_delay)

        raw_size = os.getenv(_BATCH_SIZE_ENV)
        if raw_size is not None:
            try:
                changes["batch_size"] = min(max(int(raw_size), 1), MAX_BATCH_SIZE)
            except ValueError:
                logger.warning("Ignoring malformed %s=%r", _BATCH_SIZE_ENV, raw_size)

        region = os.getenv(_REGION_ENV)
        if region and not self.region:
            changes["region"] = region

        return replace(self, **changes) if changes else self

    def with_overrides(self, **overrides: object) -> GlueSyncConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_properties_file(path: str | Path) -> dict[str, str]:
    """Read a `key=value` properties file; blank lines and `#`/`!` comments are skipped."""
    props: dict[str, str] = {}
    for lineno, line in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "!")):
            continue
        if "=" not in stripped:
            raise ValueError(f"{path}:{lineno}: expected key=value, got {stripped!r}")
        key, value = stripped.split("=", 1)
        props[key.strip()] = value.strip()
    return props
