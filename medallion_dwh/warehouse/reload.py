"""
Truncate-and-reload executor.

Every table of every layer is refreshed the same way: TRUNCATE it, then
compute its complete rowset and append it. Both sub-steps are timed and
logged separately so the step log shows where a batch spent its time.
"""

import time
from typing import Any, Callable

from ..core.catalog import TableSpec
from ..core.models.batch_result import StepOutcome
from ..core.models.load_log import INSERT_STEP, SUCCESS, TRUNCATE_STEP, LoadLogEntry
from ..observability import metrics
from ..observability.logger import get_logger
from .load_log import LoadLogSink
from .store import LayerStore

logger = get_logger(__name__)

Populate = Callable[[], list[dict[str, Any]]]


class StepFailedError(Exception):
    """
    Raised when a sub-step of a reload job fails.

    Carries the job and step names so the failure record can name them
    without parsing the message.
    """

    def __init__(self, job_name: str, step_name: str, cause: BaseException):
        self.job_name = job_name
        self.step_name = step_name
        self.cause = cause
        super().__init__(f"{job_name} failed during {step_name}: {type(cause).__name__}: {cause}")


class ReloadJob:
    """
    One table refresh.

    Args:
        table: Target table
        populate: Callable returning the complete rowset of the table as
            dictionaries keyed by column name. It runs after the truncate,
            inside the batch transaction, so it may read tables refreshed
            earlier in the same batch.
    """

    def __init__(self, table: TableSpec, populate: Populate):
        self.table = table
        self.populate = populate

    @property
    def name(self) -> str:
        return self.table.qualified_name

    def __repr__(self) -> str:
        return f"ReloadJob({self.name})"


class TruncateReloadExecutor:
    """
    Runs reload jobs against a store and records their steps.

    Args:
        store: Store holding the target tables
        step_log: Sink receiving one entry per sub-step
        layer: Layer label used for metrics
    """

    def __init__(self, store: LayerStore, step_log: LoadLogSink, layer: str):
        self.store = store
        self.step_log = step_log
        self.layer = layer

    def reload(self, job: ReloadJob) -> StepOutcome:
        """
        Truncate the job's table and repopulate it.

        Returns:
            StepOutcome with both durations and the number of rows written

        Raises:
            StepFailedError: If either sub-step fails
        """
        truncate_duration = self._run_step(job, TRUNCATE_STEP, lambda: self.store.truncate(job.table))

        rows_written = 0

        def insert() -> None:
            nonlocal rows_written
            rows_written = self.store.insert_rows(job.table, job.populate())

        insert_duration = self._run_step(job, INSERT_STEP, insert)

        metrics.record_rows_written(self.layer, job.name, rows_written)
        logger.info(
            f"Reloaded {job.name}",
            extra={"layer": self.layer, "job_name": job.name, "rows_written": rows_written},
        )

        return StepOutcome(
            job_name=job.name,
            truncate_duration=truncate_duration,
            insert_duration=insert_duration,
            rows_written=rows_written,
        )

    def _run_step(self, job: ReloadJob, step_name: str, action: Callable[[], None]) -> float:
        if step_name == TRUNCATE_STEP:
            logger.info(f">> Truncating Table: {job.name}")
        else:
            logger.info(f">> Inserting Data Into: {job.name}")

        start = time.perf_counter()
        try:
            action()
        except Exception as e:
            metrics.record_step_failure(self.layer, job.name, step_name, type(e).__name__)
            raise StepFailedError(job.name, step_name, e) from e
        duration = time.perf_counter() - start

        self.step_log.record(
            LoadLogEntry(job_name=job.name, step_name=step_name, total_duration=duration, message=SUCCESS)
        )
        metrics.record_step(self.layer, job.name, step_name, duration)
        logger.info(
            f">> {step_name} Duration: {duration:.3f} seconds",
            extra={"layer": self.layer, "job_name": job.name, "step_name": step_name},
        )
        return duration
