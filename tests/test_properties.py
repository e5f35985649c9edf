import pytest

from hudiglue.core.config import GlueSyncConfig
from hudiglue.core.errors import CatalogSyncError, UnsupportedOperationError
from hudiglue.core.models import CatalogTableRef, Instant, TableDefinition, merge_parameters
from hudiglue.core.properties import LAST_COMMIT_TIME_SYNC, PropertyManager
from hudiglue.core.tables import ENABLE_MDT_LISTING, TableReconciler

REF = CatalogTableRef("db", "trips")


class _Resolver:
    base_path = "s3://bucket/trips"

    def __init__(self, instant: Instant | None):
        self.instant = instant

    def get_table_avro_schema(self, include_metadata_fields: bool = True):
        raise AssertionError("not used")

    def last_instant(self) -> Instant | None:
        return self.instant


def _manager(transport, resolver=None, **config_kw) -> PropertyManager:
    config = GlueSyncConfig(database_name="db", **config_kw)
    return PropertyManager(transport, config, TableReconciler(transport, config), resolver)


@pytest.fixture
def table(transport) -> TableDefinition:
    definition = TableDefinition(name="trips", parameters={"a": "1", "b": "2"})
    transport.tables[REF] = definition
    return definition


def test_merge_parameters_is_left_biased_union():
    assert merge_parameters({"a": "1", "b": "2"}, {"b": "3", "c": "4"}) == {
        "a": "1",
        "b": "3",
        "c": "4",
    }


def test_update_parameters_merges_and_keeps_other_keys(transport, table):
    changed = _manager(transport).update_table_parameters(REF, {"b": "3"}, skip_archive=True)

    assert changed is True
    (_, _, sent, skip_archive) = transport.called("update_table")[0]
    assert sent.parameters == {"a": "1", "b": "3"}
    assert skip_archive is True


def test_update_parameters_skips_when_already_present(transport, table):
    manager = _manager(transport)

    assert manager.update_table_parameters(REF, {"a": "1"}, skip_archive=True) is False
    assert manager.update_table_parameters(REF, {}, skip_archive=True) is False
    assert transport.called("update_table") == []


def test_update_table_properties_adds_metadata_listing_flag(transport, table):
    _manager(transport, metadata_file_listing=True).update_table_properties(REF, {"k": "v"})

    sent = transport.called("update_table")[0][2]
    assert sent.parameters == {"a": "1", "b": "2", "k": "v", ENABLE_MDT_LISTING: "TRUE"}


def test_last_commit_time_is_stamped_and_read_back(transport, table):
    manager = _manager(transport, _Resolver(Instant("20240102030405")))

    assert manager.get_last_commit_time_synced(REF) is None
    assert manager.update_last_commit_time_synced(REF) is True
    assert manager.get_last_commit_time_synced(REF) == "20240102030405"
    assert manager.get_table_properties(REF)[LAST_COMMIT_TIME_SYNC] == "20240102030405"

    # Same instant again: nothing to send.
    assert manager.update_last_commit_time_synced(REF) is False
    assert len(transport.called("update_table")) == 1


def test_last_commit_time_with_empty_timeline_changes_nothing(transport, table):
    assert _manager(transport, _Resolver(None)).update_last_commit_time_synced(REF) is False
    assert transport.called("update_table") == []


def test_last_commit_time_requires_resolver(transport, table):
    with pytest.raises(CatalogSyncError, match="No storage metadata resolver"):
        _manager(transport).update_last_commit_time_synced(REF)


def test_get_properties_of_missing_table_is_fatal(transport):
    with pytest.raises(CatalogSyncError, match="Table not found"):
        _manager(transport).get_table_properties(REF)


@pytest.mark.parametrize(
    "call",
    [
        lambda m: m.get_last_replicated_time(REF),
        lambda m: m.update_last_replicated_timestamp(REF, "20240101"),
        lambda m: m.delete_last_replicated_timestamp(REF),
    ],
)
def test_replication_bookkeeping_is_unsupported(transport, call):
    with pytest.raises(UnsupportedOperationError, match="Not supported"):
        call(_manager(transport))
