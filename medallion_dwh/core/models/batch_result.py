"""
BatchResult model: the outcome of one layer batch (ephemeral).
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .load_log import FailureRecord


class BatchState(str, Enum):
    """Lifecycle of a layer batch."""

    IDLE = "idle"
    RUNNING = "running"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class StepOutcome(BaseModel):
    """
    Timing of one truncate-and-reload job.

    Attributes:
        job_name: Target table
        truncate_duration: Seconds spent clearing the table
        insert_duration: Seconds spent computing and appending rows
        rows_written: Number of rows appended
    """

    job_name: str
    truncate_duration: float = Field(..., ge=0.0)
    insert_duration: float = Field(..., ge=0.0)
    rows_written: int = Field(..., ge=0)


class BatchResult(BaseModel):
    """
    Outcome of a layer batch.

    A committed batch carries one StepOutcome per job and no failure; a
    rolled-back batch carries the single FailureRecord and no steps, since
    nothing it did survived.

    Note: BatchResult is not persisted; the load logs are the durable trail.
    """

    batch_name: str
    layer: str
    state: BatchState
    steps: list[StepOutcome] = Field(default_factory=list)
    failure: FailureRecord | None = Field(None, validate_default=True)
    duration_seconds: float = Field(0.0, ge=0.0)

    @field_validator("state")
    @classmethod
    def check_terminal(cls, v):
        """Only finished batches produce a result."""
        if v not in (BatchState.COMMITTED, BatchState.ROLLED_BACK):
            raise ValueError(f"BatchResult requires a terminal state, got {v.value}")
        return v

    @field_validator("failure")
    @classmethod
    def check_failure_consistency(cls, v, info):
        """Rolled-back batches carry a failure, committed ones never do."""
        state = info.data.get("state")
        if state == BatchState.ROLLED_BACK and v is None:
            raise ValueError("rolled_back batch must carry a failure record")
        if state == BatchState.COMMITTED and v is not None:
            raise ValueError("committed batch cannot carry a failure record")
        return v

    @property
    def succeeded(self) -> bool:
        return self.state == BatchState.COMMITTED

    @property
    def rows_written(self) -> int:
        return sum(step.rows_written for step in self.steps)
