"""
Silver layer: cleansed copies of the bronze tables.

Each job reads its full bronze snapshot through the store (inside the batch
transaction), runs the matching transform and returns the cleansed rows.
"""

from datetime import date
from typing import Any, Callable

from pydantic import BaseModel

from ..core.catalog import (
    BRONZE_CRM_CUST_INFO,
    BRONZE_CRM_PRD_INFO,
    BRONZE_CRM_SALES_DETAILS,
    BRONZE_ERP_CUST_AZ12,
    BRONZE_ERP_LOC_A101,
    BRONZE_ERP_PX_CAT_G1V2,
    SILVER_CRM_CUST_INFO,
    SILVER_CRM_PRD_INFO,
    SILVER_CRM_SALES_DETAILS,
    SILVER_ERP_CUST_AZ12,
    SILVER_ERP_LOC_A101,
    SILVER_ERP_PX_CAT_G1V2,
    TableSpec,
)
from ..core.cleansing import (
    cleanse_customers,
    cleanse_erp_categories,
    cleanse_erp_customers,
    cleanse_erp_locations,
    cleanse_products,
    cleanse_sales,
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
from ..warehouse.reload import ReloadJob
from ..warehouse.store import LayerStore


class SilverLoader:
    """
    Builds the silver reload jobs.

    Args:
        store: Store holding the bronze and silver tables
        as_of: Reference date for the future-birthdate rule
    """

    def __init__(self, store: LayerStore, as_of: date | None = None):
        self.store = store
        self.as_of = as_of or date.today()

    def _read(self, table: TableSpec, model: type[RawRow]) -> list[Any]:
        return [model(**row) for row in self.store.fetch_rows(table)]

    def _job(
        self,
        target: TableSpec,
        source: TableSpec,
        model: type[RawRow],
        transform: Callable[[list[Any]], list[BaseModel]],
    ) -> ReloadJob:
        def populate() -> list[dict[str, Any]]:
            return [row.model_dump() for row in transform(self._read(source, model))]

        return ReloadJob(target, populate)

    def jobs(self) -> list[ReloadJob]:
        """Reload jobs for every silver table, in load order."""
        return [
            self._job(SILVER_CRM_CUST_INFO, BRONZE_CRM_CUST_INFO, CustomerInfoRaw, cleanse_customers),
            self._job(SILVER_CRM_PRD_INFO, BRONZE_CRM_PRD_INFO, ProductInfoRaw, cleanse_products),
            self._job(SILVER_CRM_SALES_DETAILS, BRONZE_CRM_SALES_DETAILS, SalesDetailRaw, cleanse_sales),
            self._job(
                SILVER_ERP_CUST_AZ12,
                BRONZE_ERP_CUST_AZ12,
                ErpCustomerRaw,
                lambda rows: cleanse_erp_customers(rows, self.as_of),
            ),
            self._job(SILVER_ERP_LOC_A101, BRONZE_ERP_LOC_A101, ErpLocationRaw, cleanse_erp_locations),
            self._job(SILVER_ERP_PX_CAT_G1V2, BRONZE_ERP_PX_CAT_G1V2, ErpCategoryRaw, cleanse_erp_categories),
        ]
