"""
Layer batches: loaders, orchestration and the pipeline runner.
"""

from .orchestrator import BatchOrchestrator
from .pipeline import MedallionPipeline
from .readers import CSVReader

__all__ = [
    "BatchOrchestrator",
    "CSVReader",
    "MedallionPipeline",
]
