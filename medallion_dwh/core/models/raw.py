"""
Raw (bronze) row models.

Bronze stores the source extracts as-is: most columns are free text, a few
are typed (ids, quantities, ISO dates) exactly like the landing tables. Empty
CSV fields become NULL; a value that does not fit a typed column raises a
pydantic ValidationError, which aborts the bronze batch.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

_TEXT_ANNOTATION = str | None


class RawRow(BaseModel):
    """Base class for bronze rows."""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_null(cls, value: Any, info: ValidationInfo) -> Any:
        """Empty fields load as NULL; typed fields also tolerate padding."""
        if not isinstance(value, str):
            return value
        if value == "":
            return None
        if cls.model_fields[info.field_name].annotation != _TEXT_ANNOTATION:
            return value.strip() or None
        return value


class CustomerInfoRaw(RawRow):
    """CRM customer profile extract (cust_info.csv)."""

    cst_id: int | None = None
    cst_key: str | None = None
    cst_firstname: str | None = None
    cst_lastname: str | None = None
    cst_marital_status: str | None = None
    cst_gndr: str | None = None
    cst_create_date: str | None = None


class ProductInfoRaw(RawRow):
    """CRM product version extract (prd_info.csv)."""

    prd_id: int | None = None
    prd_key: str | None = None
    prd_nm: str | None = None
    prd_cost: str | None = None
    prd_line: str | None = None
    prd_start_dt: date | None = None
    prd_end_dt: date | None = None


class SalesDetailRaw(RawRow):
    """CRM sales line extract (sales_details.csv). Dates are YYYYMMDD text."""

    sls_ord_num: str | None = None
    sls_prd_key: str | None = None
    sls_cust_id: str | None = None
    sls_order_dt: str | None = None
    sls_ship_dt: str | None = None
    sls_due_dt: str | None = None
    sls_sales: int | None = None
    sls_quantity: int | None = None
    sls_price: int | None = None


class ErpCustomerRaw(RawRow):
    """ERP customer demographics extract (CUST_AZ12.csv)."""

    cid: str | None = None
    bdate: date | None = None
    gen: str | None = None


class ErpLocationRaw(RawRow):
    """ERP customer location extract (LOC_A101.csv)."""

    cid: str | None = None
    cntry: str | None = None


class ErpCategoryRaw(RawRow):
    """ERP product category lookup extract (PX_CAT_G1V2.csv)."""

    id: str | None = None
    cat: str | None = None
    subcat: str | None = None
    maintenance: str | None = None
