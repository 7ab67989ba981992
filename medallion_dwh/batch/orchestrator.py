"""
Batch orchestration: one layer, one transaction.

Lifecycle of a batch:

    IDLE -> RUNNING -> COMMITTED
                    -> ROLLED_BACK

The orchestrator opens the transaction, clears the layer's step log and runs
the reload jobs in their fixed order. Any error rolls back everything the
batch did (data and step log alike) and leaves exactly one failure record
behind. The total wall-clock time is logged whatever the outcome.
"""

import time

from ..core.models.batch_result import BatchResult, BatchState, StepOutcome
from ..core.models.load_log import FailureRecord
from ..observability import metrics
from ..observability.logger import get_logger
from ..warehouse.load_log import FailureLog, LoadLogSink
from ..warehouse.reload import ReloadJob, StepFailedError, TruncateReloadExecutor
from ..warehouse.store import LayerStore

logger = get_logger(__name__)


def batch_name_for(layer: str) -> str:
    """'silver' -> 'LOAD SILVER BATCH'"""
    return f"LOAD {layer.upper()} BATCH"


class BatchOrchestrator:
    """
    Runs the reload jobs of one layer as an all-or-nothing batch.

    Args:
        store: Store holding the layer tables
        step_log: The layer's step log, written inside the transaction
        failure_log: Cross-layer failure log, written after rollback
        layer: bronze, silver or gold
        batch_name: Label used in logs and failure records
    """

    def __init__(
        self,
        store: LayerStore,
        step_log: LoadLogSink,
        failure_log: FailureLog,
        layer: str,
        batch_name: str | None = None,
    ):
        self.store = store
        self.step_log = step_log
        self.failure_log = failure_log
        self.layer = layer
        self.batch_name = batch_name or batch_name_for(layer)
        self.state = BatchState.IDLE

    def run(self, jobs: list[ReloadJob]) -> BatchResult:
        """
        Run the jobs in order inside one transaction.

        Returns:
            BatchResult: COMMITTED with one StepOutcome per job, or
            ROLLED_BACK with the failure record

        Raises:
            RuntimeError: If this orchestrator is already running a batch
        """
        if self.state == BatchState.RUNNING:
            raise RuntimeError(f"{self.batch_name} is already running")

        self.state = BatchState.RUNNING
        executor = TruncateReloadExecutor(self.store, self.step_log, self.layer)
        steps: list[StepOutcome] = []
        failure: FailureRecord | None = None

        logger.info("=" * 50)
        logger.info(f"Starting {self.batch_name}", extra={"layer": self.layer, "job_count": len(jobs)})
        logger.info("=" * 50)

        batch_start = time.perf_counter()
        try:
            with self.store.transaction():
                self.step_log.clear()
                for job in jobs:
                    steps.append(executor.reload(job))
            self.state = BatchState.COMMITTED
        except Exception as e:
            self.state = BatchState.ROLLED_BACK
            steps = []
            failure = self._failure_record(e)
            logger.error(
                f"ERROR OCCURRED DURING {self.batch_name}",
                extra={
                    "layer": self.layer,
                    "job_name": failure.job_name,
                    "step_name": failure.step_name,
                    "error_type": failure.error_type,
                    "error_message": failure.message,
                },
                exc_info=True,
            )
            self.failure_log.record(failure)
        finally:
            duration = time.perf_counter() - batch_start
            logger.info(
                f"The whole process took {duration:.3f} seconds",
                extra={"layer": self.layer, "duration_seconds": round(duration, 3)},
            )

        metrics.record_batch(self.layer, self.state == BatchState.COMMITTED, duration)

        return BatchResult(
            batch_name=self.batch_name,
            layer=self.layer,
            state=self.state,
            steps=steps,
            failure=failure,
            duration_seconds=duration,
        )

    def _failure_record(self, error: Exception) -> FailureRecord:
        job_name = None
        step_name = None
        cause: BaseException = error
        if isinstance(error, StepFailedError):
            job_name = error.job_name
            step_name = error.step_name
            cause = error.cause

        return FailureRecord(
            batch_name=self.batch_name,
            layer=self.layer,
            job_name=job_name,
            step_name=step_name,
            error_type=type(cause).__name__,
            message=str(cause),
            total_duration=0.0,
        )
