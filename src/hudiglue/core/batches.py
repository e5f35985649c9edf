"""Batch execution of partition mutations.

The catalog accepts a bounded number of partitions per call and may fail
individual items. This module splits work into ordered chunks, submits them
sequentially with a fixed pause between calls, and decides which per-item
errors are benign.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Iterator, Sequence, TypeVar

from hudiglue.core.errors import (
    BatchPartialFailureError,
    CatalogSyncError,
    CatalogTransportError,
)
from hudiglue.core.models import BatchError, CatalogTableRef
from hudiglue.core.transport import CatalogTransport

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100
BATCH_REQUEST_SLEEP_SECONDS = 1.0

T = TypeVar("T")


class BatchOperation(str, Enum):
    """Kinds of batch partition mutations."""

    ADD = "add"
    UPDATE = "update"
    DROP = "drop"


def batches(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive chunks of at most `size` items, preserving order."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class BatchExecutor:
    """
    Submit bulk partition mutations in bounded, throttled chunks.

    Chunks already applied stay applied when a later chunk fails; nothing is
    rolled back or retried here.
    """

    def __init__(
        self,
        transport: CatalogTransport,
        *,
        batch_size: int = MAX_BATCH_SIZE,
        delay_seconds: float = BATCH_REQUEST_SLEEP_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size < 1 or batch_size > MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.transport = transport
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def _submit(
        self, ref: CatalogTableRef, operation: BatchOperation, chunk: list
    ) -> list[BatchError]:
        if operation is BatchOperation.ADD:
            return self.transport.batch_add_partitions(ref, chunk)
        if operation is BatchOperation.UPDATE:
            return self.transport.batch_update_partitions(ref, chunk)
        return self.transport.batch_drop_partitions(ref, chunk)

    def execute(
        self,
        ref: CatalogTableRef,
        operation: BatchOperation,
        items: Sequence,
    ) -> int:
        """
        Run `operation` over `items` chunk by chunk.

        Args:
            ref: Target table.
            operation: Which batch mutation to call.
            items: Partition records (add/update) or value tuples (drop).

        Returns:
            The number of chunks submitted.

        Raises:
            BatchPartialFailureError: If a chunk returned errors that are not
                tolerated for this operation.
            CatalogSyncError: If the transport call itself failed.
        """
        if not items:
            return 0

        submitted = 0
        for chunk in batches(items, self.batch_size):
            try:
                errors = self._submit(ref, operation, chunk)
            except CatalogTransportError as exc:
                raise CatalogSyncError(
                    f"Fail to {operation.value} partitions to {ref}", ref=ref
                ) from exc
            submitted += 1

            if errors:
                if operation is BatchOperation.ADD and all(
                    e.is_already_exists for e in errors
                ):
                    logger.warning(
                        "Partitions already exist in catalog for %s: %s", ref, errors
                    )
                else:
                    raise BatchPartialFailureError(operation.value, ref, errors)

            self._sleep(self.delay_seconds)

        logger.debug(
            "Submitted %d %s batch(es) for %s", submitted, operation.value, ref
        )
        return submitted
