import logging

import pytest

from hudiglue.core.config import (
    BASE_PATH_KEY,
    DATABASE_KEY,
    PARTITION_FIELDS_KEY,
    SKIP_TABLE_ARCHIVE_KEY,
    GlueSyncConfig,
    load_properties_file,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("HUDIGLUE_BATCH_DELAY", "HUDIGLUE_BATCH_SIZE", "AWS_REGION"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = GlueSyncConfig()

    assert config.database_name == "default"
    assert config.skip_table_archive is True
    assert config.batch_size == 100
    assert config.batch_delay_seconds == 1.0
    assert config.metadata_listing_flag == "FALSE"


def test_from_properties_file(tmp_path):
    path = tmp_path / "sync.properties"
    path.write_text(
        "\n".join(
            [
                "# meta sync",
                "! also a comment",
                f"{DATABASE_KEY}=analytics",
                f"{BASE_PATH_KEY} = s3://bucket/trips",
                f"{PARTITION_FIELDS_KEY}=year, month,day",
                f"{SKIP_TABLE_ARCHIVE_KEY}=false",
                "",
            ]
        ),
        encoding="utf-8",
    )

    config = GlueSyncConfig.from_properties(load_properties_file(path))

    assert config.database_name == "analytics"
    assert config.base_path == "s3://bucket/trips"
    assert config.partition_fields == ("year", "month", "day")
    assert config.skip_table_archive is False


def test_malformed_properties_line_reports_line_number(tmp_path):
    path = tmp_path / "bad.properties"
    path.write_text("a=1\nno separator here\n", encoding="utf-8")

    with pytest.raises(ValueError, match=":2:"):
        load_properties_file(path)


def test_env_overrides_batching_and_region(monkeypatch):
    monkeypatch.setenv("HUDIGLUE_BATCH_DELAY", "0")
    monkeypatch.setenv("HUDIGLUE_BATCH_SIZE", "500")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    config = GlueSyncConfig().with_env()

    assert config.batch_delay_seconds == 0.0
    assert config.batch_size == 100
    assert config.region == "eu-west-1"


def test_malformed_env_values_are_ignored(monkeypatch, caplog):
    monkeypatch.setenv("HUDIGLUE_BATCH_DELAY", "soon")
    monkeypatch.setenv("HUDIGLUE_BATCH_SIZE", "many")

    with caplog.at_level(logging.WARNING, logger="hudiglue.core.config"):
        assert GlueSyncConfig().with_env() == GlueSyncConfig()

    assert "Ignoring malformed HUDIGLUE_BATCH_DELAY='soon'" in caplog.text
    assert "Ignoring malformed HUDIGLUE_BATCH_SIZE='many'" in caplog.text


def test_with_overrides_ignores_none():
    config = GlueSyncConfig(database_name="db").with_overrides(database_name=None, region="us-east-1")

    assert config.database_name == "db"
    assert config.region == "us-east-1"
