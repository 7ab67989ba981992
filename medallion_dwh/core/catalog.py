"""
Warehouse table catalog.

Single source of truth for every table the pipeline touches: the bronze
landing tables, the cleansed silver tables, the gold star schema and the load
logs. DDL, bulk inserts and the in-memory store all read their column lists
from here.
"""

from pydantic import BaseModel, ConfigDict

BRONZE = "bronze"
SILVER = "silver"
GOLD = "gold"
AUDIT = "audit"

LAYERS = (BRONZE, SILVER, GOLD)


class Column(BaseModel):
    """
    A table column.

    Attributes:
        name: Column name
        sql_type: PostgreSQL type used in the DDL
        generated: True for identity columns the pipeline never writes
    """

    model_config = ConfigDict(frozen=True)

    name: str
    sql_type: str
    generated: bool = False


class TableSpec(BaseModel):
    """Schema-qualified table definition."""

    model_config = ConfigDict(frozen=True)

    schema_name: str
    name: str
    columns: tuple[Column, ...]

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}"

    @property
    def column_names(self) -> list[str]:
        """Writable columns, in DDL order."""
        return [c.name for c in self.columns if not c.generated]


def _table(schema_name: str, name: str, *columns: tuple[str, str]) -> TableSpec:
    return TableSpec(
        schema_name=schema_name,
        name=name,
        columns=tuple(Column(name=col, sql_type=sql_type) for col, sql_type in columns),
    )


TEXT = "VARCHAR(50)"

# =======================
# BRONZE (raw landing)
# =======================

BRONZE_CRM_CUST_INFO = _table(
    BRONZE, "crm_cust_info",
    ("cst_id", "INTEGER"),
    ("cst_key", TEXT),
    ("cst_firstname", TEXT),
    ("cst_lastname", TEXT),
    ("cst_marital_status", TEXT),
    ("cst_gndr", TEXT),
    ("cst_create_date", TEXT),
)

BRONZE_CRM_PRD_INFO = _table(
    BRONZE, "crm_prd_info",
    ("prd_id", "INTEGER"),
    ("prd_key", TEXT),
    ("prd_nm", TEXT),
    ("prd_cost", TEXT),
    ("prd_line", TEXT),
    ("prd_start_dt", "DATE"),
    ("prd_end_dt", "DATE"),
)

BRONZE_CRM_SALES_DETAILS = _table(
    BRONZE, "crm_sales_details",
    ("sls_ord_num", TEXT),
    ("sls_prd_key", TEXT),
    ("sls_cust_id", TEXT),
    ("sls_order_dt", TEXT),
    ("sls_ship_dt", TEXT),
    ("sls_due_dt", TEXT),
    ("sls_sales", "INTEGER"),
    ("sls_quantity", "INTEGER"),
    ("sls_price", "INTEGER"),
)

BRONZE_ERP_CUST_AZ12 = _table(
    BRONZE, "erp_cust_az12",
    ("cid", TEXT),
    ("bdate", "DATE"),
    ("gen", TEXT),
)

BRONZE_ERP_LOC_A101 = _table(
    BRONZE, "erp_loc_a101",
    ("cid", TEXT),
    ("cntry", TEXT),
)

BRONZE_ERP_PX_CAT_G1V2 = _table(
    BRONZE, "erp_px_cat_g1v2",
    ("id", TEXT),
    ("cat", TEXT),
    ("subcat", TEXT),
    ("maintenance", TEXT),
)

# =======================
# SILVER (cleansed)
# =======================

SILVER_CRM_CUST_INFO = _table(
    SILVER, "crm_cust_info",
    ("cst_id", TEXT),
    ("cst_key", TEXT),
    ("cst_firstname", TEXT),
    ("cst_lastname", TEXT),
    ("cst_marital_status", TEXT),
    ("cst_gndr", TEXT),
    ("cst_create_date", "DATE"),
)

SILVER_CRM_PRD_INFO = _table(
    SILVER, "crm_prd_info",
    ("prd_id", TEXT),
    ("cat_id", TEXT),
    ("prd_key", TEXT),
    ("prd_nm", TEXT),
    ("prd_cost", "INTEGER"),
    ("prd_line", TEXT),
    ("prd_start_dt", "DATE"),
    ("prd_end_dt", "DATE"),
)

SILVER_CRM_SALES_DETAILS = _table(
    SILVER, "crm_sales_details",
    ("sls_ord_num", TEXT),
    ("sls_prd_key", TEXT),
    ("sls_cust_id", TEXT),
    ("sls_order_dt", "DATE"),
    ("sls_ship_dt", "DATE"),
    ("sls_due_dt", "DATE"),
    ("sls_sales", "INTEGER"),
    ("sls_quantity", "INTEGER"),
    ("sls_price", "NUMERIC(12, 2)"),
)

SILVER_ERP_CUST_AZ12 = _table(
    SILVER, "erp_cust_az12",
    ("cid", TEXT),
    ("bdate", "DATE"),
    ("gen", TEXT),
)

SILVER_ERP_LOC_A101 = _table(
    SILVER, "erp_loc_a101",
    ("cid", TEXT),
    ("cntry", TEXT),
)

SILVER_ERP_PX_CAT_G1V2 = _table(
    SILVER, "erp_px_cat_g1v2",
    ("id", TEXT),
    ("cat", TEXT),
    ("subcat", TEXT),
    ("maintenance", TEXT),
)

# =======================
# GOLD (star schema)
# =======================

GOLD_DIM_CUSTOMERS = _table(
    GOLD, "dim_customers",
    ("customer_key", "INTEGER PRIMARY KEY"),
    ("customer_id", TEXT),
    ("customer_number", TEXT),
    ("customer_first_name", TEXT),
    ("customer_last_name", TEXT),
    ("customer_country", TEXT),
    ("customer_marital_status", TEXT),
    ("customer_gender", TEXT),
    ("customer_birthdate", "DATE"),
    ("customer_create_date", "DATE"),
)

GOLD_DIM_PRODUCTS = _table(
    GOLD, "dim_products",
    ("product_key", "INTEGER PRIMARY KEY"),
    ("product_id", TEXT),
    ("product_number", TEXT),
    ("product_name", TEXT),
    ("category_id", TEXT),
    ("category_name", TEXT),
    ("subcategory_name", TEXT),
    ("product_maintenance", TEXT),
    ("product_cost", "INTEGER"),
    ("product_line", TEXT),
    ("product_start_date", "DATE"),
)

GOLD_FACT_SALES = _table(
    GOLD, "fact_sales",
    ("sales_order_number", TEXT),
    ("sales_product_key", "INTEGER"),
    ("sales_customer_key", "INTEGER"),
    ("sales_order_date", "DATE"),
    ("sales_ship_date", "DATE"),
    ("sales_due_date", "DATE"),
    ("sales_sold_price", "NUMERIC(12, 2)"),
    ("sales_quantity", "INTEGER"),
    ("sales_original_price", "NUMERIC(12, 2)"),
)

# =======================
# LOAD LOGS
# =======================


def _load_log_table(schema_name: str) -> TableSpec:
    return TableSpec(
        schema_name=schema_name,
        name="load_log",
        columns=(
            Column(name="log_id", sql_type="BIGINT GENERATED ALWAYS AS IDENTITY", generated=True),
            Column(name="job_name", sql_type="VARCHAR(100)"),
            Column(name="step_name", sql_type=TEXT),
            Column(name="total_duration", sql_type="DOUBLE PRECISION"),
            Column(name="message", sql_type="TEXT"),
            Column(name="logged_at", sql_type="TIMESTAMPTZ"),
        ),
    )


LOAD_LOG_TABLES = {layer: _load_log_table(layer) for layer in LAYERS}

FAILURE_LOG_TABLE = TableSpec(
    schema_name=AUDIT,
    name="load_failure",
    columns=(
        Column(name="failure_id", sql_type="BIGINT GENERATED ALWAYS AS IDENTITY", generated=True),
        Column(name="batch_name", sql_type="VARCHAR(100)"),
        Column(name="layer", sql_type="VARCHAR(20)"),
        Column(name="job_name", sql_type="VARCHAR(100)"),
        Column(name="step_name", sql_type=TEXT),
        Column(name="error_type", sql_type="VARCHAR(100)"),
        Column(name="message", sql_type="TEXT"),
        Column(name="total_duration", sql_type="DOUBLE PRECISION"),
        Column(name="logged_at", sql_type="TIMESTAMPTZ"),
    ),
)

# Load order: CRM customer, product and sales first, then the three ERP tables
BRONZE_TABLES = (
    BRONZE_CRM_CUST_INFO,
    BRONZE_CRM_PRD_INFO,
    BRONZE_CRM_SALES_DETAILS,
    BRONZE_ERP_CUST_AZ12,
    BRONZE_ERP_LOC_A101,
    BRONZE_ERP_PX_CAT_G1V2,
)

SILVER_TABLES = (
    SILVER_CRM_CUST_INFO,
    SILVER_CRM_PRD_INFO,
    SILVER_CRM_SALES_DETAILS,
    SILVER_ERP_CUST_AZ12,
    SILVER_ERP_LOC_A101,
    SILVER_ERP_PX_CAT_G1V2,
)

GOLD_TABLES = (
    GOLD_DIM_CUSTOMERS,
    GOLD_DIM_PRODUCTS,
    GOLD_FACT_SALES,
)

LAYER_TABLES = {
    BRONZE: BRONZE_TABLES,
    SILVER: SILVER_TABLES,
    GOLD: GOLD_TABLES,
}

ALL_TABLES = (
    *BRONZE_TABLES,
    *SILVER_TABLES,
    *GOLD_TABLES,
    *LOAD_LOG_TABLES.values(),
    FAILURE_LOG_TABLE,
)

_BY_NAME = {table.qualified_name: table for table in ALL_TABLES}


def get_table(qualified_name: str) -> TableSpec:
    """
    Look up a table by its schema-qualified name.

    Raises:
        KeyError: If the table is not part of the warehouse
    """
    try:
        return _BY_NAME[qualified_name]
    except KeyError:
        raise KeyError(f"Unknown warehouse table: {qualified_name}") from None


def load_log_table(layer: str) -> TableSpec:
    """
    Step log table of a layer.

    Raises:
        ValueError: If the layer is not bronze, silver or gold
    """
    if layer not in LOAD_LOG_TABLES:
        raise ValueError(f"Unknown layer '{layer}'. Must be one of {', '.join(LAYERS)}")
    return LOAD_LOG_TABLES[layer]
