"""
Cleansed (silver) row models.

Categorical columns are typed as Literal so a transform can never emit a
label outside its enumeration, and never NULL.
"""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict

NOT_AVAILABLE = "N/A"

MaritalStatus = Literal["Married", "Single", "N/A"]
Gender = Literal["Male", "Female", "N/A"]
ProductLine = Literal["Mountain", "Road", "Other Sales", "Touring", "N/A"]


class CleansedRow(BaseModel):
    """Base class for silver rows."""

    model_config = ConfigDict(frozen=True)


class CustomerInfo(CleansedRow):
    """
    Deduplicated CRM customer profile.

    Attributes:
        cst_id: Customer id as text (never NULL, unique per table)
        cst_key: Customer number shared with the ERP tables
        cst_marital_status: Married, Single or N/A
        cst_gndr: Male, Female or N/A
        cst_create_date: Profile creation date of the kept (most recent) row
    """

    cst_id: str
    cst_key: str | None = None
    cst_firstname: str | None = None
    cst_lastname: str | None = None
    cst_marital_status: MaritalStatus = NOT_AVAILABLE
    cst_gndr: Gender = NOT_AVAILABLE
    cst_create_date: date | None = None


class ProductInfo(CleansedRow):
    """
    Product version with its validity interval.

    Attributes:
        prd_id: Source product id as text
        cat_id: Category id derived from the composite key (joins the ERP lookup)
        prd_key: Product number derived from the composite key
        prd_cost: Cost, 0 when the source value was not numeric
        prd_line: Mountain, Road, Other Sales, Touring or N/A
        prd_start_dt: Version start date
        prd_end_dt: Day before the next version starts; NULL for the current version
    """

    prd_id: str | None = None
    cat_id: str
    prd_key: str
    prd_nm: str | None = None
    prd_cost: int = 0
    prd_line: ProductLine = NOT_AVAILABLE
    prd_start_dt: date | None = None
    prd_end_dt: date | None = None


class SalesDetail(CleansedRow):
    """Sales line with proper dates and reconciled sales/price."""

    sls_ord_num: str | None = None
    sls_prd_key: str | None = None
    sls_cust_id: str | None = None
    sls_order_dt: date | None = None
    sls_ship_dt: date | None = None
    sls_due_dt: date | None = None
    sls_sales: int | None = None
    sls_quantity: int | None = None
    sls_price: Decimal | None = None


class ErpCustomer(CleansedRow):
    """ERP customer demographics keyed by the CRM customer number."""

    cid: str | None = None
    bdate: date | None = None
    gen: Gender = NOT_AVAILABLE


class ErpLocation(CleansedRow):
    """ERP customer country keyed by the CRM customer number."""

    cid: str | None = None
    cntry: str = NOT_AVAILABLE


class ErpCategory(CleansedRow):
    """Product category lookup."""

    id: str | None = None
    cat: str | None = None
    subcat: str | None = None
    maintenance: str | None = None
