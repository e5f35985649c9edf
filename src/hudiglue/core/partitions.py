"""Partition path helpers.

A partition path is relative to the table base path, e.g.
`year=2023/month=05/day=01`. Extractors turn it into the ordered list of
partition values the catalog uses as the partition key.
"""

from __future__ import annotations

from typing import Protocol


class PartitionValueExtractor(Protocol):
    """Interface for turning a relative partition path into partition values."""

    def extract_partition_values(self, path: str) -> list[str]:
        """Return one value per partition key, in key order."""
        ...


class MultiPartKeysValueExtractor:
    """
    Extract values from `key=value/key=value` or plain `value/value` paths.

    Each path segment yields one value; the `key=` prefix is dropped when
    present.
    """

    def extract_partition_values(self, path: str) -> list[str]:
        segments = [s for s in path.strip("/").split("/") if s]
        return [s.split("=", 1)[1] if "=" in s else s for s in segments]


class SinglePartPartitionValueExtractor:
    """Treat the whole path as a single partition value."""

    def extract_partition_values(self, path: str) -> list[str]:
        value = path.strip("/")
        return [value.split("=", 1)[1] if "=" in value else value]


class NonPartitionedExtractor:
    """Extractor for tables without partitions."""

    def extract_partition_values(self, path: str) -> list[str]:
        return []


def partition_location(base_path: str, path: str) -> str:
    """Absolute location of a partition under the table base path."""
    base = base_path.rstrip("/")
    rel = path.strip("/")
    return f"{base}/{rel}" if rel else base


def s3a_to_s3(path: str) -> str:
    """Rewrite Hadoop `s3a://` URIs to `s3://`, which the catalog engines expect."""
    if path.startswith("s3a://"):
        return "s3://" + path[len("s3a://") :]
    return path
