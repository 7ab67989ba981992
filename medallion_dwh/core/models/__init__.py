"""
Row and result models for the warehouse pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .batch_result import BatchResult, BatchState, StepOutcome
from .cleansed import (
    NOT_AVAILABLE,
    CustomerInfo,
    ErpCategory,
    ErpCustomer,
    ErpLocation,
    ProductInfo,
    SalesDetail,
)
from .dimensional import DimCustomer, DimProduct, FactSales
from .load_log import (
    INSERT_STEP,
    SUCCESS,
    TRUNCATE_STEP,
    FailureRecord,
    LoadLogEntry,
)
from .raw import (
    CustomerInfoRaw,
    ErpCategoryRaw,
    ErpCustomerRaw,
    ErpLocationRaw,
    ProductInfoRaw,
    RawRow,
    SalesDetailRaw,
)

__all__ = [
    "RawRow",
    "CustomerInfoRaw",
    "ProductInfoRaw",
    "SalesDetailRaw",
    "ErpCustomerRaw",
    "ErpLocationRaw",
    "ErpCategoryRaw",
    "NOT_AVAILABLE",
    "CustomerInfo",
    "ProductInfo",
    "SalesDetail",
    "ErpCustomer",
    "ErpLocation",
    "ErpCategory",
    "DimCustomer",
    "DimProduct",
    "FactSales",
    "SUCCESS",
    "TRUNCATE_STEP",
    "INSERT_STEP",
    "LoadLogEntry",
    "FailureRecord",
    "BatchState",
    "StepOutcome",
    "BatchResult",
]
