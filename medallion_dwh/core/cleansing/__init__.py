"""
Cleansing rules and silver transforms.
"""

from .rules import CleansingError
from .transforms import (
    cleanse_customers,
    cleanse_erp_categories,
    cleanse_erp_customers,
    cleanse_erp_locations,
    cleanse_products,
    cleanse_sales,
)

__all__ = [
    "CleansingError",
    "cleanse_customers",
    "cleanse_products",
    "cleanse_sales",
    "cleanse_erp_customers",
    "cleanse_erp_locations",
    "cleanse_erp_categories",
]
