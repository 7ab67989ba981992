"""
Pytest configuration and fixtures for medallion-dwh tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import csv
import os
from datetime import date
from typing import Generator

import pytest
from pyspark.sql import SparkSession
from testcontainers.postgres import PostgresContainer

from medallion_dwh.config.settings import PipelineSettings, SourceFileConfig
from medallion_dwh.core.catalog import ALL_TABLES
from medallion_dwh.warehouse.connection import DatabaseConnectionPool
from medallion_dwh.warehouse.schema_mgmt import SchemaManager
from medallion_dwh.warehouse.store import InMemoryLayerStore, PostgresLayerStore

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

# Reference date used wherever "today" matters (future birthdates)
AS_OF = date(2024, 6, 30)

SOURCE_FILES = {
    "bronze.crm_cust_info": "source_crm/cust_info.csv",
    "bronze.crm_prd_info": "source_crm/prd_info.csv",
    "bronze.crm_sales_details": "source_crm/sales_details.csv",
    "bronze.erp_cust_az12": "source_erp/CUST_AZ12.csv",
    "bronze.erp_loc_a101": "source_erp/LOC_A101.csv",
    "bronze.erp_px_cat_g1v2": "source_erp/PX_CAT_G1V2.csv",
}


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("medallion-dwh-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_datawarehouse"
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Connection pool against the test container with the warehouse schema created

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_datawarehouse",
        user="test_pipeline",
        password="test_password",
    )
    pool.open()
    SchemaManager(pool).initialize()

    yield pool

    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool) -> DatabaseConnectionPool:
    """
    Provide a clean warehouse by truncating every table before the test

    Args:
        db_pool: Session-scoped pool

    Returns:
        The same pool, with all warehouse tables empty
    """
    with db_pool.get_connection() as conn:
        with conn.cursor() as cur:
            for table in ALL_TABLES:
                cur.execute(f"TRUNCATE TABLE {table.qualified_name}")
        conn.commit()

    return db_pool


@pytest.fixture(scope="function")
def postgres_store(clean_db) -> PostgresLayerStore:
    """LayerStore backed by the clean test database"""
    return PostgresLayerStore(clean_db)


# =======================
# IN-MEMORY FIXTURES
# =======================

@pytest.fixture(scope="function")
def memory_store() -> InMemoryLayerStore:
    """Empty in-memory LayerStore holding every warehouse table"""
    return InMemoryLayerStore()


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return FIXTURES_DIR


class FixtureFileReader:
    """
    Source reader over local files without Spark

    Same contract as CSVReader: positional columns, leading lines skipped,
    blank fields returned as None.
    """

    def __init__(self):
        self.calls = []

    def read(self, file_path, column_names, delimiter=",", skip_rows=1):
        self.calls.append(file_path)
        with open(file_path, newline="") as handle:
            lines = list(csv.reader(handle, delimiter=delimiter))[skip_rows:]
        for number, line in enumerate(lines, start=skip_rows + 1):
            if len(line) != len(column_names):
                raise ValueError(
                    f"{file_path} line {number}: expected {len(column_names)} fields, got {len(line)}"
                )
        return [
            {name: (value if value != "" else None) for name, value in zip(column_names, line)}
            for line in lines
        ]


@pytest.fixture(scope="function")
def fixture_reader() -> FixtureFileReader:
    """Spark-free reader for the fixture extracts"""
    return FixtureFileReader()


@pytest.fixture(scope="function")
def pipeline_settings(test_data_dir) -> PipelineSettings:
    """Settings pointing at the fixture extracts, with a fixed reference date"""
    return PipelineSettings(
        data_dir=test_data_dir,
        sources={table: SourceFileConfig(path=path) for table, path in SOURCE_FILES.items()},
        as_of=AS_OF,
    )

