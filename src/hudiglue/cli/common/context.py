"""Application context management for the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from hudiglue.cli.common.exits import die
from hudiglue.core.auth import AuthError
from hudiglue.core.client import GlueCatalogSyncClient
from hudiglue.core.config import GlueSyncConfig, load_properties_file
from hudiglue.core.resolver import LocalTableMetadataResolver


def _is_local_path(base_path: str) -> bool:
    """True for plain filesystem paths and file:// URIs."""
    return bool(base_path) and ("://" not in base_path or base_path.startswith("file://"))


@dataclass
class SyncAppContext:
    """Application context holding sync configuration and a lazily built client."""

    config: GlueSyncConfig
    catalog_id: str | None = None
    _client: GlueCatalogSyncClient | None = field(default=None, repr=False)

    def resolver(self) -> LocalTableMetadataResolver | None:
        """Storage resolver for local base paths; None for object-store paths."""
        base_path = self.config.base_path
        if not _is_local_path(base_path):
            return None
        return LocalTableMetadataResolver(base_path.removeprefix("file://"))

    @property
    def client(self) -> GlueCatalogSyncClient:
        if self._client is None:
            try:
                self._client = GlueCatalogSyncClient.from_config(
                    self.config, resolver=self.resolver(), catalog_id=self.catalog_id
                )
            except AuthError as exc:
                die(str(exc), code=1)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def build_sync_context(
    *,
    config_path: Path | None = None,
    profile: str | None = None,
    region: str | None = None,
    database: str | None = None,
    base_path: str | None = None,
    partition_fields: str | None = None,
    catalog_id: str | None = None,
) -> SyncAppContext:
    """Build the application context from a properties file plus CLI overrides.

    Args:
        config_path: Optional Hudi meta-sync properties file.
        profile: AWS profile override.
        region: AWS region override.
        database: Catalog database override.
        base_path: Table base path override.
        partition_fields: Comma-separated partition fields override.
        catalog_id: Glue catalog id, when syncing into another account.

    Returns:
        SyncAppContext: Context with the resolved configuration.
    """
    if config_path is not None:
        try:
            props = load_properties_file(config_path)
        except (OSError, ValueError) as exc:
            die(f"Cannot read config {config_path}: {exc}", code=2)
        config = GlueSyncConfig.from_properties(props)
    else:
        config = GlueSyncConfig().with_env()

    fields = None
    if partition_fields is not None:
        fields = tuple(p.strip() for p in partition_fields.split(",") if p.strip())

    config = config.with_overrides(
        profile=profile,
        region=region,
        database_name=database,
        base_path=base_path,
        partition_fields=fields,
    )
    return SyncAppContext(config=config, catalog_id=catalog_id)
