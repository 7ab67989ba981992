"""
Unit tests for the in-memory layer store and the load log sinks built on it.
"""

import pytest

from medallion_dwh.core.catalog import (
    FAILURE_LOG_TABLE,
    SILVER_ERP_LOC_A101,
    TableSpec,
    load_log_table,
)
from medallion_dwh.core.models import FailureRecord, LoadLogEntry
from medallion_dwh.warehouse.load_log import (
    FailureLog,
    TableLoadLog,
    read_failures,
    read_load_log,
    summarize_load_log,
)
from medallion_dwh.warehouse.store import InMemoryLayerStore, StoreError


pytestmark = pytest.mark.unit


def locations(*pairs):
    return [{"cid": cid, "cntry": cntry} for cid, cntry in pairs]


class TestInMemoryLayerStore:
    """Tests for InMemoryLayerStore"""

    def test_insert_and_fetch(self, memory_store):
        """Test rows come back in insertion order"""
        written = memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("A", "Germany"), ("B", "N/A")))

        assert written == 2
        assert memory_store.fetch_rows(SILVER_ERP_LOC_A101) == locations(("A", "Germany"), ("B", "N/A"))

    def test_missing_columns_are_null(self, memory_store):
        """Test absent keys are written as NULL"""
        memory_store.insert_rows(SILVER_ERP_LOC_A101, [{"cid": "A"}])

        assert memory_store.fetch_rows(SILVER_ERP_LOC_A101) == [{"cid": "A", "cntry": None}]

    def test_truncate(self, memory_store):
        """Test truncate empties the table"""
        memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("A", "Germany")))
        memory_store.truncate(SILVER_ERP_LOC_A101)

        assert memory_store.fetch_rows(SILVER_ERP_LOC_A101) == []

    def test_fetched_rows_are_copies(self, memory_store):
        """Test callers cannot mutate stored rows"""
        memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("A", "Germany")))

        memory_store.fetch_rows(SILVER_ERP_LOC_A101)[0]["cntry"] = "changed"

        assert memory_store.fetch_rows(SILVER_ERP_LOC_A101)[0]["cntry"] == "Germany"

    def test_unknown_table_raises(self):
        """Test tables outside the store are rejected"""
        store = InMemoryLayerStore(tables=(SILVER_ERP_LOC_A101,))
        other = TableSpec(schema_name="silver", name="other", columns=())

        with pytest.raises(StoreError):
            store.fetch_rows(other)

    def test_generated_columns_get_identities(self, memory_store):
        """Test identity columns are filled in increasing order"""
        table = load_log_table("silver")
        memory_store.insert_rows(table, [{"job_name": "a"}, {"job_name": "b"}])

        ids = [row["log_id"] for row in memory_store.fetch_rows(table)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 2

    def test_transaction_commits(self, memory_store):
        """Test changes made inside a clean transaction survive"""
        with memory_store.transaction():
            assert memory_store.in_transaction
            memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("A", "Germany")))

        assert not memory_store.in_transaction
        assert len(memory_store.fetch_rows(SILVER_ERP_LOC_A101)) == 1

    def test_transaction_rolls_back_on_error(self, memory_store):
        """Test every change of a failed transaction is undone"""
        memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("A", "Germany")))

        with pytest.raises(RuntimeError):
            with memory_store.transaction():
                memory_store.truncate(SILVER_ERP_LOC_A101)
                memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("B", "France")))
                raise RuntimeError("boom")

        assert memory_store.fetch_rows(SILVER_ERP_LOC_A101) == locations(("A", "Germany"))
        assert not memory_store.in_transaction

    def test_nested_transaction_raises(self, memory_store):
        """Test only one transaction can be open"""
        with memory_store.transaction():
            with pytest.raises(StoreError):
                with memory_store.transaction():
                    pass

    def test_order_by_descending_with_limit(self, memory_store):
        """Test ordering and limits on reads"""
        memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("B", "x"), ("C", "y"), ("A", "z")))

        rows = memory_store.fetch_rows(SILVER_ERP_LOC_A101, order_by=["cid"], descending=True, limit=2)

        assert [row["cid"] for row in rows] == ["C", "B"]

    def test_row_counts(self, memory_store):
        """Test per-table row counts for dry-run reporting"""
        memory_store.insert_rows(SILVER_ERP_LOC_A101, locations(("A", "x")))

        counts = memory_store.row_counts()
        assert counts["silver.erp_loc_a101"] == 1
        assert counts["gold.fact_sales"] == 0


class TestLoadLogs:
    """Tests for TableLoadLog, FailureLog and the read functions"""

    def entry(self, job, step, duration):
        return LoadLogEntry(job_name=job, step_name=step, total_duration=duration)

    def failure(self, job="silver.crm_sales_details"):
        return FailureRecord(
            batch_name="LOAD SILVER BATCH",
            layer="silver",
            job_name=job,
            step_name="INSERT",
            error_type="CleansingError",
            message="boom",
        )

    def test_record_and_read(self, memory_store):
        """Test entries are read back in write order"""
        log = TableLoadLog.for_layer(memory_store, "silver")
        log.record(self.entry("silver.crm_cust_info", "TRUNCATE", 0.5))
        log.record(self.entry("silver.crm_cust_info", "INSERT", 1.5))

        entries = read_load_log(memory_store, "silver")

        assert [(e.job_name, e.step_name) for e in entries] == [
            ("silver.crm_cust_info", "TRUNCATE"),
            ("silver.crm_cust_info", "INSERT"),
        ]
        assert all(e.log_id is not None for e in entries)

    def test_logs_are_scoped_per_layer(self, memory_store):
        """Test each layer has its own step log"""
        TableLoadLog.for_layer(memory_store, "bronze").record(self.entry("bronze.crm_cust_info", "INSERT", 1))

        assert read_load_log(memory_store, "silver") == []
        assert len(read_load_log(memory_store, "bronze")) == 1

    def test_clear(self, memory_store):
        """Test clear empties the layer log"""
        log = TableLoadLog.for_layer(memory_store, "gold")
        log.record(self.entry("gold.dim_customers", "INSERT", 1))
        log.clear()

        assert log.entries() == []

    def test_summary_groups_by_job(self, memory_store):
        """Test total processes and durations per job"""
        log = TableLoadLog.for_layer(memory_store, "silver")
        log.record(self.entry("silver.crm_cust_info", "TRUNCATE", 0.25))
        log.record(self.entry("silver.crm_cust_info", "INSERT", 1.0))
        log.record(self.entry("silver.crm_prd_info", "TRUNCATE", 0.5))

        summary = summarize_load_log(memory_store, "silver")

        assert summary == [
            {"job_name": "silver.crm_cust_info", "total_processes": 2, "total_duration": 1.25},
            {"job_name": "silver.crm_prd_info", "total_processes": 1, "total_duration": 0.5},
        ]

    def test_failure_log_newest_first(self, memory_store):
        """Test failures are read most recent first"""
        failures = FailureLog(memory_store)
        failures.record(self.failure("silver.crm_cust_info"))
        failures.record(self.failure("silver.crm_prd_info"))

        records = read_failures(memory_store, limit=10)

        assert [r.job_name for r in records] == ["silver.crm_prd_info", "silver.crm_cust_info"]
        assert all(r.total_duration == 0.0 for r in records)

    def test_failure_log_refuses_open_transaction(self, memory_store):
        """Test failures cannot be written where a rollback would erase them"""
        with memory_store.transaction():
            with pytest.raises(StoreError):
                FailureLog(memory_store).record(self.failure())

        assert memory_store.fetch_rows(FAILURE_LOG_TABLE) == []
