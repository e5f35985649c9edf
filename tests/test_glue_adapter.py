from dataclasses import replace
from datetime import datetime, timezone

import boto3
import pytest
from botocore.stub import Stubber

from hudiglue.core.adapters.glue import GlueCatalogAdapter, table_to_glue
from hudiglue.core.errors import AlreadyExistsError, EntityNotFoundError, TransportError
from hudiglue.core.models import CatalogTableRef, PartitionRecord

REF = CatalogTableRef("db", "trips")

GLUE_TABLE = {
    "Name": "trips",
    "DatabaseName": "db",
    "Owner": "etl",
    "TableType": "EXTERNAL_TABLE",
    "Parameters": {"EXTERNAL": "TRUE", "custom": "x"},
    "PartitionKeys": [{"Name": "date", "Type": "string", "Comment": ""}],
    "StorageDescriptor": {
        "Columns": [
            {"Name": "id", "Type": "bigint", "Comment": "trip id"},
            {"Name": "rider", "Type": "string"},
        ],
        "Location": "s3://bucket/trips",
        "InputFormat": "in.Format",
        "OutputFormat": "out.Format",
        "Compressed": False,
        "SerdeInfo": {
            "SerializationLibrary": "my.SerDe",
            "Parameters": {"serialization.format": "1"},
        },
    },
}


@pytest.fixture
def glue():
    client = boto3.client(
        "glue",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def test_get_table_converts_response(glue):
    client, stubber = glue
    stubber.add_response("get_table", {"Table": GLUE_TABLE}, {"DatabaseName": "db", "Name": "trips"})

    table = GlueCatalogAdapter(client).get_table(REF)

    assert [c.name for c in table.columns] == ["id", "rider"]
    assert table.columns[0].comment == "trip id"
    assert table.columns[1].comment is None
    assert table.partition_keys[0].name == "date"
    assert table.storage_location == "s3://bucket/trips"
    assert table.serde_class == "my.SerDe"
    assert table.extra == {"Owner": "etl"}
    assert table.storage.extra == {"Compressed": False}


def test_update_table_resends_unknown_fields_and_skip_archive(glue):
    client, stubber = glue
    stubber.add_response("get_table", {"Table": GLUE_TABLE}, {"DatabaseName": "db", "Name": "trips"})
    adapter = GlueCatalogAdapter(client)
    table = adapter.get_table(REF)

    table_input = table_to_glue(table)
    stubber.add_response(
        "update_table",
        {},
        {"DatabaseName": "db", "TableInput": table_input, "SkipArchive": True},
    )
    adapter.update_table(REF, table, skip_archive=True)

    assert table_input["Owner"] == "etl"
    assert table_input["StorageDescriptor"]["Compressed"] is False
    assert "DatabaseName" not in table_input


def test_update_table_resends_column_parameters(glue):
    client, stubber = glue
    remote = dict(
        GLUE_TABLE,
        PartitionKeys=[{"Name": "date", "Type": "string", "Parameters": {"source": "path"}}],
        StorageDescriptor=dict(
            GLUE_TABLE["StorageDescriptor"],
            Columns=[{"Name": "id", "Type": "bigint", "Parameters": {"iceberg.field.id": "1"}}],
        ),
    )
    stubber.add_response("get_table", {"Table": remote}, {"DatabaseName": "db", "Name": "trips"})
    adapter = GlueCatalogAdapter(client)
    table = adapter.get_table(REF)

    assert table.columns[0].parameters == {"iceberg.field.id": "1"}
    assert table.partition_keys[0].parameters == {"source": "path"}

    expected = {k: v for k, v in remote.items() if k != "DatabaseName"}
    stubber.add_response(
        "update_table",
        {},
        {"DatabaseName": "db", "TableInput": expected, "SkipArchive": False},
    )
    adapter.update_table(REF, table)


def test_catalog_id_is_added_to_every_call(glue):
    client, stubber = glue
    stubber.add_response(
        "get_database",
        {"Database": {"Name": "db"}},
        {"Name": "db", "CatalogId": "123456789012"},
    )

    GlueCatalogAdapter(client, catalog_id="123456789012").get_database("db")


@pytest.mark.parametrize(
    "code, error",
    [
        ("EntityNotFoundException", EntityNotFoundError),
        ("AlreadyExistsException", AlreadyExistsError),
        ("ThrottlingException", TransportError),
    ],
)
def test_client_errors_map_to_transport_errors(glue, code: str, error: type):
    client, stubber = glue
    stubber.add_client_error("create_database", service_error_code=code, service_message="nope")

    with pytest.raises(error) as excinfo:
        GlueCatalogAdapter(client).create_database("db", description="desc")

    if error is TransportError:
        assert excinfo.value.error_code == code


def test_list_partitions_follows_next_token(glue):
    client, stubber = glue
    base = {"DatabaseName": "db", "TableName": "trips"}
    stubber.add_response(
        "get_partitions",
        {
            "Partitions": [
                {"Values": ["2024-01-01"], "StorageDescriptor": {"Location": "s3://bucket/trips/date=2024-01-01"}}
            ],
            "NextToken": "page-2",
        },
        base,
    )
    stubber.add_response(
        "get_partitions",
        {"Partitions": [{"Values": ["2024-01-02"], "StorageDescriptor": {"Location": "s3://bucket/trips/date=2024-01-02"}}]},
        {**base, "NextToken": "page-2"},
    )

    partitions = list(GlueCatalogAdapter(client).list_partitions(REF))

    assert partitions == [
        PartitionRecord(("2024-01-01",), "s3://bucket/trips/date=2024-01-01"),
        PartitionRecord(("2024-01-02",), "s3://bucket/trips/date=2024-01-02"),
    ]


def test_batch_add_returns_item_errors_with_index(glue):
    client, stubber = glue
    records = [
        PartitionRecord(("2024-01-01",), "s3://bucket/trips/date=2024-01-01"),
        PartitionRecord(("2024-01-02",), "s3://bucket/trips/date=2024-01-02"),
    ]
    stubber.add_response(
        "batch_create_partition",
        {
            "Errors": [
                {
                    "PartitionValues": ["2024-01-02"],
                    "ErrorDetail": {"ErrorCode": "AlreadyExistsException", "ErrorMessage": "exists"},
                }
            ]
        },
        {
            "DatabaseName": "db",
            "TableName": "trips",
            "PartitionInputList": [
                {
                    "Values": [r.values[0]],
                    "StorageDescriptor": {
                        "Columns": [],
                        "Location": r.location,
                        "SerdeInfo": {"Parameters": {}},
                    },
                }
                for r in records
            ],
        },
    )

    errors = GlueCatalogAdapter(client).batch_add_partitions(REF, records)

    assert len(errors) == 1
    assert errors[0].item_index == 1
    assert errors[0].is_already_exists
    assert errors[0].values == ("2024-01-02",)


def test_batch_update_and_delete_request_shapes(glue):
    client, stubber = glue
    record = PartitionRecord(("2024-01-01",), "s3://bucket/trips/date=2024-01-01")
    stubber.add_response(
        "batch_update_partition",
        {
            "Errors": [
                {
                    "PartitionValueList": ["2024-01-01"],
                    "ErrorDetail": {"ErrorCode": "EntityNotFoundException", "ErrorMessage": "gone"},
                }
            ]
        },
        {
            "DatabaseName": "db",
            "TableName": "trips",
            "Entries": [
                {
                    "PartitionValueList": ["2024-01-01"],
                    "PartitionInput": {
                        "Values": ["2024-01-01"],
                        "StorageDescriptor": {
                            "Columns": [],
                            "Location": "s3://bucket/trips/date=2024-01-01",
                            "SerdeInfo": {"Parameters": {}},
                        },
                    },
                }
            ],
        },
    )
    stubber.add_response(
        "batch_delete_partition",
        {},
        {
            "DatabaseName": "db",
            "TableName": "trips",
            "PartitionsToDelete": [{"Values": ["2024-01-01"]}],
        },
    )
    adapter = GlueCatalogAdapter(client)

    update_errors = adapter.batch_update_partitions(REF, [record])
    drop_errors = adapter.batch_drop_partitions(REF, [("2024-01-01",)])

    assert [(e.item_index, e.error_code) for e in update_errors] == [(0, "EntityNotFoundException")]
    assert drop_errors == []


def test_create_table_sends_timestamps(glue):
    client, stubber = glue
    adapter = GlueCatalogAdapter(client)
    stubber.add_response("get_table", {"Table": GLUE_TABLE}, {"DatabaseName": "db", "Name": "trips"})
    table = adapter.get_table(REF)
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    table = replace(table, last_access_time=now, last_analyzed_time=now)
    table_input = table_to_glue(table)
    stubber.add_response("create_table", {}, {"DatabaseName": "db", "TableInput": table_input})

    adapter.create_table(REF, table)

    assert table_input["LastAccessTime"] == now
    assert table_input["LastAnalyzedTime"] == now
