"""
Bronze layer: raw landing of the CRM and ERP source extracts.

Each bronze table is reloaded from its configured delimited file. Rows are
read positionally as text, typed through the raw row models and appended
unchanged otherwise.
"""

from pathlib import Path
from typing import Any, Protocol

from ..config.settings import PipelineSettings
from ..core.catalog import (
    BRONZE_CRM_CUST_INFO,
    BRONZE_CRM_PRD_INFO,
    BRONZE_CRM_SALES_DETAILS,
    BRONZE_ERP_CUST_AZ12,
    BRONZE_ERP_LOC_A101,
    BRONZE_ERP_PX_CAT_G1V2,
    BRONZE_TABLES,
    TableSpec,
)
from ..core.models.raw import (
    CustomerInfoRaw,
    ErpCategoryRaw,
    ErpCustomerRaw,
    ErpLocationRaw,
    ProductInfoRaw,
    RawRow,
    SalesDetailRaw,
)
from ..observability.logger import get_logger
from ..warehouse.reload import ReloadJob

logger = get_logger(__name__)

RAW_MODELS: dict[str, type[RawRow]] = {
    BRONZE_CRM_CUST_INFO.qualified_name: CustomerInfoRaw,
    BRONZE_CRM_PRD_INFO.qualified_name: ProductInfoRaw,
    BRONZE_CRM_SALES_DETAILS.qualified_name: SalesDetailRaw,
    BRONZE_ERP_CUST_AZ12.qualified_name: ErpCustomerRaw,
    BRONZE_ERP_LOC_A101.qualified_name: ErpLocationRaw,
    BRONZE_ERP_PX_CAT_G1V2.qualified_name: ErpCategoryRaw,
}


class SourceReader(Protocol):
    def read(
        self,
        file_path: str,
        column_names: list[str],
        delimiter: str = ",",
        skip_rows: int = 1,
    ) -> list[dict[str, Any]]:
        ...


class BronzeLoader:
    """
    Builds the bronze reload jobs.

    Args:
        reader: Delimited file reader (CSVReader in production)
        settings: Pipeline settings holding the source file list
    """

    def __init__(self, reader: SourceReader, settings: PipelineSettings):
        self.reader = reader
        self.settings = settings

    def load_table(self, table: TableSpec) -> list[dict[str, Any]]:
        """
        Read and type the source file of one bronze table.

        Raises:
            KeyError: If no source is configured for the table
            FileNotFoundError: If the source file does not exist
            pydantic.ValidationError: If a row does not fit the table types
        """
        path = self.settings.source_path(table.qualified_name)
        if not Path(path).exists():
            raise FileNotFoundError(f"Source file not found for {table.qualified_name}: {path}")

        source = self.settings.sources[table.qualified_name]
        model = RAW_MODELS[table.qualified_name]

        raw_rows = self.reader.read(
            str(path),
            table.column_names,
            delimiter=source.delimiter,
            skip_rows=source.skip_rows,
        )
        rows = [model(**row).model_dump() for row in raw_rows]

        logger.info(
            f"Loaded {len(rows)} rows from {path}",
            extra={"job_name": table.qualified_name, "file_path": str(path)},
        )
        return rows

    def jobs(self) -> list[ReloadJob]:
        """Reload jobs for every bronze table, in load order."""
        return [
            ReloadJob(table, lambda table=table: self.load_table(table))
            for table in BRONZE_TABLES
        ]
