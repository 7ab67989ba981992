"""
Warehouse catalog, row models and cleansing logic.
"""
