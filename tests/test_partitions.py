import pytest

from hudiglue.core.partitions import (
    MultiPartKeysValueExtractor,
    NonPartitionedExtractor,
    SinglePartPartitionValueExtractor,
    partition_location,
    s3a_to_s3,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("date=2024-01-01", ["2024-01-01"]),
        ("year=2023/month=05/day=01", ["2023", "05", "01"]),
        ("2023/05/01/", ["2023", "05", "01"]),
        ("", []),
    ],
)
def test_multi_part_extractor(path: str, expected: list[str]):
    assert MultiPartKeysValueExtractor().extract_partition_values(path) == expected


def test_single_part_and_non_partitioned_extractors():
    assert SinglePartPartitionValueExtractor().extract_partition_values("dt=2024-01-01/") == [
        "2024-01-01"
    ]
    assert NonPartitionedExtractor().extract_partition_values("anything") == []


@pytest.mark.parametrize(
    "base, path, expected",
    [
        ("s3://b/t", "date=2024-01-01", "s3://b/t/date=2024-01-01"),
        ("s3://b/t/", "/date=2024-01-01/", "s3://b/t/date=2024-01-01"),
        ("s3://b/t", "", "s3://b/t"),
    ],
)
def test_partition_location(base: str, path: str, expected: str):
    assert partition_location(base, path) == expected


def test_s3a_to_s3():
    assert s3a_to_s3("s3a://bucket/trips") == "s3://bucket/trips"
    assert s3a_to_s3("s3://bucket/trips") == "s3://bucket/trips"
    assert s3a_to_s3("/tmp/trips") == "/tmp/trips"
