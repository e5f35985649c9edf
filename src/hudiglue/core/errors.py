"""Error types for catalog reconciliation.

Transport adapters raise the `CatalogTransportError` family; reconcilers
recover the benign cases (not found, already exists) and wrap everything
else into a single `CatalogSyncError` carrying the table identity and the
original cause.
"""

from __future__ import annotations

from typing import Sequence

from hudiglue.core.models import BatchError, CatalogTableRef


class CatalogTransportError(Exception):
    """Base class for failures reported by a catalog transport."""


class EntityNotFoundError(CatalogTransportError):
    """The requested database or table does not exist."""


class AlreadyExistsError(CatalogTransportError):
    """A create call lost a race against another creator."""


class TransportError(CatalogTransportError):
    """Network, throttling, auth or serialization failure from the transport."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class CatalogSyncError(RuntimeError):
    """Fatal catalog sync failure, carrying the database/table identity."""

    def __init__(self, message: str, ref: CatalogTableRef | str | None = None):
        super().__init__(message)
        self.ref = ref


class BatchPartialFailureError(CatalogSyncError):
    """A batch partition mutation returned per-item errors that are not benign."""

    def __init__(
        self,
        operation: str,
        ref: CatalogTableRef,
        errors: Sequence[BatchError],
    ):
        self.operation = operation
        self.errors = list(errors)
        super().__init__(
            f"Fail to {operation} partitions to {ref} with error(s): {self.errors}",
            ref=ref,
        )


class UnsupportedOperationError(CatalogSyncError, NotImplementedError):
    """The operation is not supported by this catalog backend."""

    def __init__(self, operation: str):
        super().__init__(f"Not supported: `{operation}`")
        self.operation = operation
