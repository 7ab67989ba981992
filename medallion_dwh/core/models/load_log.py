"""
Load log models: per-step success entries and cross-layer failure records.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

SUCCESS = "SUCCESS"
TRUNCATE_STEP = "TRUNCATE"
INSERT_STEP = "INSERT"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoadLogEntry(BaseModel):
    """
    One immutable entry of a layer's step log.

    Attributes:
        log_id: Identity assigned by the database (None before insert)
        job_name: Target table the step worked on (e.g. "silver.crm_cust_info")
        step_name: TRUNCATE or INSERT
        total_duration: Wall-clock duration of the step in seconds
        message: SUCCESS, or a short status text
        logged_at: When the entry was recorded
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "log_id": 1,
                "job_name": "silver.crm_cust_info",
                "step_name": "TRUNCATE",
                "total_duration": 0.004,
                "message": "SUCCESS",
            }
        },
    )

    log_id: int | None = None
    job_name: str = Field(..., min_length=1)
    step_name: str = Field(..., min_length=1)
    total_duration: float = Field(..., ge=0.0)
    message: str = SUCCESS
    logged_at: datetime = Field(default_factory=_utcnow)


class FailureRecord(BaseModel):
    """
    The single record written when a layer batch rolls back.

    The failing job and step are kept as their own columns instead of being
    buried in the error text. Duration is not measured for failures and is
    always 0.

    Attributes:
        failure_id: Identity assigned by the database (None before insert)
        batch_name: Batch that failed (e.g. "LOAD SILVER BATCH")
        layer: bronze, silver or gold
        job_name: Target table being processed when the error happened
        step_name: TRUNCATE, INSERT or None if the error happened outside a step
        error_type: Exception class name
        message: Error detail
        total_duration: Always 0.0
        logged_at: When the failure was recorded
    """

    model_config = ConfigDict(frozen=True)

    failure_id: int | None = None
    batch_name: str = Field(..., min_length=1)
    layer: str
    job_name: str | None = None
    step_name: str | None = None
    error_type: str
    message: str
    total_duration: float = Field(0.0, ge=0.0, le=0.0)
    logged_at: datetime = Field(default_factory=_utcnow)
