"""
Load log operations: per-layer step logs and the cross-layer failure log.

The step log of a layer lives inside the batch transaction: it is cleared at
the start of every batch and rolls back together with the data. The failure
log is append-only and written outside any batch transaction so that it
survives the rollback it describes.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..core.catalog import FAILURE_LOG_TABLE, TableSpec, load_log_table
from ..core.models.load_log import FailureRecord, LoadLogEntry
from ..observability.logger import get_logger
from .store import LayerStore, StoreError

logger = get_logger(__name__)


class LoadLogSink(ABC):
    """Destination for step log entries."""

    @abstractmethod
    def record(self, entry: LoadLogEntry) -> None:
        """Append one entry."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""


class TableLoadLog(LoadLogSink):
    """
    Step log stored in a layer's load_log table.

    Args:
        store: Layer store the batch runs against
        table: The layer's load_log table spec
    """

    def __init__(self, store: LayerStore, table: TableSpec):
        self.store = store
        self.table = table

    @classmethod
    def for_layer(cls, store: LayerStore, layer: str) -> "TableLoadLog":
        return cls(store, load_log_table(layer))

    def record(self, entry: LoadLogEntry) -> None:
        self.store.insert_rows(self.table, [entry.model_dump(exclude={"log_id"})])
        logger.debug(
            f"Logged {entry.step_name} of {entry.job_name}",
            extra={"log_table": self.table.qualified_name, "duration_seconds": entry.total_duration},
        )

    def clear(self) -> None:
        self.store.truncate(self.table)

    def entries(self) -> list[LoadLogEntry]:
        rows = self.store.fetch_rows(self.table, order_by=["log_id"])
        return [LoadLogEntry(**row) for row in rows]


class FailureLog:
    """
    Append-only record of failed batches.

    record() refuses to run inside an open transaction: a failure written
    there would be undone by the very rollback it reports.
    """

    def __init__(self, store: LayerStore, table: TableSpec = FAILURE_LOG_TABLE):
        self.store = store
        self.table = table

    def record(self, failure: FailureRecord) -> None:
        if self.store.in_transaction:
            raise StoreError("Failure records must be written outside the batch transaction")

        self.store.insert_rows(self.table, [failure.model_dump(exclude={"failure_id"})])
        logger.info(
            f"Recorded failure of {failure.batch_name}",
            extra={
                "layer": failure.layer,
                "job_name": failure.job_name,
                "step_name": failure.step_name,
                "error_type": failure.error_type,
            },
        )

    def entries(self, limit: int | None = None) -> list[FailureRecord]:
        """Failure records, most recent first."""
        rows = self.store.fetch_rows(
            self.table, order_by=["failure_id"], descending=True, limit=limit
        )
        return [FailureRecord(**row) for row in rows]


def read_load_log(store: LayerStore, layer: str) -> list[LoadLogEntry]:
    """
    Read the step log of the last batch of a layer.

    Args:
        store: Layer store
        layer: bronze, silver or gold

    Returns:
        Entries in the order they were written
    """
    return TableLoadLog.for_layer(store, layer).entries()


def summarize_load_log(store: LayerStore, layer: str) -> list[dict[str, Any]]:
    """
    Summarize the step log per job.

    Returns:
        One dict per job in first-logged order with job_name,
        total_processes (number of logged steps) and total_duration (seconds)
    """
    summary: dict[str, dict[str, Any]] = {}
    for entry in read_load_log(store, layer):
        job = summary.setdefault(
            entry.job_name,
            {"job_name": entry.job_name, "total_processes": 0, "total_duration": 0.0},
        )
        job["total_processes"] += 1
        job["total_duration"] += entry.total_duration
    return list(summary.values())


def read_failures(store: LayerStore, limit: int | None = 20) -> list[FailureRecord]:
    """Most recent failure records across all layers."""
    return FailureLog(store).entries(limit=limit)
