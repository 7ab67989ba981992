"""
Unit tests for BatchOrchestrator: commit, rollback and failure recording.
"""

import pytest

from medallion_dwh.batch.orchestrator import BatchOrchestrator, batch_name_for
from medallion_dwh.core.catalog import FAILURE_LOG_TABLE, SILVER_TABLES
from medallion_dwh.core.models import BatchState
from medallion_dwh.core.cleansing import CleansingError
from medallion_dwh.warehouse.load_log import FailureLog, TableLoadLog, read_failures
from medallion_dwh.warehouse.reload import ReloadJob


pytestmark = pytest.mark.unit


def marker_rows(table, tag):
    """One row whose first column carries a tag."""
    return [{table.columns[0].name: tag}]


def silver_jobs(tag, fail_at=None):
    """Six silver reload jobs; the one at fail_at raises during populate."""
    jobs = []
    for index, table in enumerate(SILVER_TABLES, start=1):
        if index == fail_at:
            def populate():
                raise CleansingError("reconcile_price", "sls_price", "quantity is zero")
        else:
            def populate(table=table):
                return marker_rows(table, tag)
        jobs.append(ReloadJob(table, populate))
    return jobs


@pytest.fixture
def orchestrator(memory_store):
    return BatchOrchestrator(
        memory_store,
        TableLoadLog.for_layer(memory_store, "silver"),
        FailureLog(memory_store),
        "silver",
    )


def snapshot(store):
    tables = {table.qualified_name: store.fetch_rows(table) for table in SILVER_TABLES}
    tables["log"] = [(e.job_name, e.step_name) for e in TableLoadLog.for_layer(store, "silver").entries()]
    return tables


class TestBatchName:
    """Tests for batch_name_for"""

    def test_batch_name(self):
        """Test batch labels follow the layer name"""
        assert batch_name_for("silver") == "LOAD SILVER BATCH"
        assert batch_name_for("gold") == "LOAD GOLD BATCH"


class TestBatchOrchestrator:
    """Tests for BatchOrchestrator"""

    def test_successful_batch_commits(self, memory_store, orchestrator):
        """Test every job runs and the step log has two entries per job"""
        result = orchestrator.run(silver_jobs("first"))

        assert result.state == BatchState.COMMITTED
        assert result.succeeded
        assert result.batch_name == "LOAD SILVER BATCH"
        assert [step.job_name for step in result.steps] == [t.qualified_name for t in SILVER_TABLES]
        assert result.rows_written == 6
        assert orchestrator.state == BatchState.COMMITTED
        assert len(TableLoadLog.for_layer(memory_store, "silver").entries()) == 12
        assert memory_store.fetch_rows(FAILURE_LOG_TABLE) == []

    def test_step_log_is_cleared_each_batch(self, memory_store, orchestrator):
        """Test the step log only describes the latest batch"""
        orchestrator.run(silver_jobs("first"))
        orchestrator.run(silver_jobs("second"))

        assert len(TableLoadLog.for_layer(memory_store, "silver").entries()) == 12

    def test_failure_rolls_back_everything(self, memory_store, orchestrator):
        """Test a failure in job 3 of 6 leaves the layer as it was"""
        orchestrator.run(silver_jobs("first"))
        before = snapshot(memory_store)

        result = orchestrator.run(silver_jobs("second", fail_at=3))

        assert result.state == BatchState.ROLLED_BACK
        assert not result.succeeded
        assert result.steps == []
        assert snapshot(memory_store) == before

    def test_failure_is_recorded_once(self, memory_store, orchestrator):
        """Test exactly one failure record naming the job and step"""
        result = orchestrator.run(silver_jobs("second", fail_at=3))

        failures = read_failures(memory_store)
        assert len(failures) == 1

        failure = failures[0]
        assert failure.batch_name == "LOAD SILVER BATCH"
        assert failure.layer == "silver"
        assert failure.job_name == SILVER_TABLES[2].qualified_name
        assert failure.step_name == "INSERT"
        assert failure.error_type == "CleansingError"
        assert "quantity is zero" in failure.message
        assert failure.total_duration == 0.0
        assert result.failure.job_name == failure.job_name

    def test_failure_on_empty_warehouse(self, memory_store, orchestrator):
        """Test a first batch that fails leaves every table empty"""
        orchestrator.run(silver_jobs("first", fail_at=1))

        for table in SILVER_TABLES:
            assert memory_store.fetch_rows(table) == []
        assert TableLoadLog.for_layer(memory_store, "silver").entries() == []

    def test_error_outside_a_step(self, memory_store):
        """Test errors before any job still produce a failure record"""

        class BrokenLog(TableLoadLog):
            def clear(self):
                raise RuntimeError("log unavailable")

        orchestrator = BatchOrchestrator(
            memory_store,
            BrokenLog.for_layer(memory_store, "silver"),
            FailureLog(memory_store),
            "silver",
        )

        result = orchestrator.run(silver_jobs("first"))

        assert result.state == BatchState.ROLLED_BACK
        assert result.failure.job_name is None
        assert result.failure.step_name is None
        assert result.failure.error_type == "RuntimeError"

    def test_running_batch_cannot_restart(self, orchestrator):
        """Test a RUNNING orchestrator refuses a second run"""
        orchestrator.state = BatchState.RUNNING

        with pytest.raises(RuntimeError):
            orchestrator.run([])

    def test_orchestrator_is_reusable(self, orchestrator):
        """Test a terminal orchestrator can run the next batch"""
        orchestrator.run(silver_jobs("first", fail_at=2))
        result = orchestrator.run(silver_jobs("second"))

        assert result.state == BatchState.COMMITTED
