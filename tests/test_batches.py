import pytest

from hudiglue.core.batches import MAX_BATCH_SIZE, BatchExecutor, BatchOperation, batches
from hudiglue.core.errors import BatchPartialFailureError, CatalogSyncError, TransportError
from hudiglue.core.models import BatchError, CatalogTableRef, PartitionRecord

REF = CatalogTableRef("db", "trips")


def _records(n: int) -> list[PartitionRecord]:
    return [PartitionRecord((f"2024-01-{i:03d}",), f"s3://b/t/date=2024-01-{i:03d}") for i in range(n)]


def _executor(transport, sleeps: list[float]) -> BatchExecutor:
    return BatchExecutor(transport, delay_seconds=1.0, sleep=sleeps.append)


def test_batches_preserves_order_and_bounds_size():
    chunks = list(batches(list(range(7)), 3))

    assert chunks == [[0, 1, 2], [3, 4, 5], [6]]


def test_batches_rejects_non_positive_size():
    with pytest.raises(ValueError, match="batch size"):
        list(batches([1], 0))


@pytest.mark.parametrize("size", [0, MAX_BATCH_SIZE + 1])
def test_executor_rejects_out_of_range_batch_size(transport, size: int):
    with pytest.raises(ValueError, match="batch_size"):
        BatchExecutor(transport, batch_size=size)


@pytest.mark.parametrize("n, expected_calls", [(1, 1), (100, 1), (101, 2), (250, 3)])
def test_add_submits_ceil_n_over_100_chunks(transport, n: int, expected_calls: int):
    sleeps: list[float] = []

    submitted = _executor(transport, sleeps).execute(REF, BatchOperation.ADD, _records(n))

    calls = transport.called("batch_add_partitions")
    assert submitted == expected_calls
    assert len(calls) == expected_calls
    assert all(len(c[2]) <= MAX_BATCH_SIZE for c in calls)
    sent = [r for c in calls for r in c[2]]
    assert sent == _records(n)
    # One pause after every chunk, the last one included.
    assert sleeps == [1.0] * expected_calls


def test_empty_input_makes_no_calls(transport):
    sleeps: list[float] = []

    for op in BatchOperation:
        assert _executor(transport, sleeps).execute(REF, op, []) == 0

    assert transport.calls == []
    assert sleeps == []


def test_add_tolerates_already_exists_errors(transport):
    records = _records(3)
    transport.batch_errors = [
        [BatchError(1, "AlreadyExistsException", "exists", records[1].values)]
    ]

    submitted = _executor(transport, []).execute(REF, BatchOperation.ADD, records)

    assert submitted == 1


def test_add_fails_when_any_error_is_not_already_exists(transport):
    records = _records(3)
    transport.batch_errors = [
        [
            BatchError(0, "AlreadyExistsException", "", records[0].values),
            BatchError(2, "InternalServiceException", "boom", records[2].values),
        ]
    ]

    with pytest.raises(BatchPartialFailureError) as excinfo:
        _executor(transport, []).execute(REF, BatchOperation.ADD, records)

    assert excinfo.value.operation == "add"
    assert excinfo.value.ref == REF
    assert "Fail to add partitions to db.trips" in str(excinfo.value)
    assert len(excinfo.value.errors) == 2


@pytest.mark.parametrize("operation", [BatchOperation.UPDATE, BatchOperation.DROP])
def test_update_and_drop_fail_on_already_exists(transport, operation: BatchOperation):
    items = _records(2) if operation is BatchOperation.UPDATE else [("a",), ("b",)]
    transport.batch_errors = [[BatchError(0, "AlreadyExistsException", "", ("a",))]]

    with pytest.raises(BatchPartialFailureError, match=f"Fail to {operation.value}"):
        _executor(transport, []).execute(REF, operation, items)


def test_failure_in_later_chunk_keeps_earlier_chunks_applied(transport):
    records = _records(150)
    transport.batch_errors = [
        [],
        [BatchError(0, "InternalServiceException", "boom", records[100].values)],
    ]

    with pytest.raises(BatchPartialFailureError):
        _executor(transport, []).execute(REF, BatchOperation.ADD, records)

    assert len(transport.called("batch_add_partitions")) == 2
    assert len(transport.partitions[REF]) == 100 + 49


def test_transport_exception_is_wrapped_with_cause(transport):
    cause = TransportError("throttled", "ThrottlingException")
    transport.fail_with["batch_drop_partitions"] = cause

    with pytest.raises(CatalogSyncError, match="Fail to drop partitions to db.trips") as excinfo:
        _executor(transport, []).execute(REF, BatchOperation.DROP, [("a",)])

    assert excinfo.value.__cause__ is cause
