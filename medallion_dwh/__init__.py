"""
medallion-dwh: Bronze/Silver/Gold warehouse batch pipeline for CRM and ERP extracts.
"""

__version__ = "0.1.0"
