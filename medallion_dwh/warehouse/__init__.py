"""
Warehouse persistence: connection pool, layer stores, load logs and the
truncate-and-reload executor.
"""

from .connection import DatabaseConnectionPool
from .load_log import FailureLog, LoadLogSink, TableLoadLog
from .reload import ReloadJob, StepFailedError, TruncateReloadExecutor
from .store import InMemoryLayerStore, LayerStore, PostgresLayerStore, StoreError

__all__ = [
    "DatabaseConnectionPool",
    "FailureLog",
    "InMemoryLayerStore",
    "LayerStore",
    "LoadLogSink",
    "PostgresLayerStore",
    "ReloadJob",
    "StepFailedError",
    "StoreError",
    "TableLoadLog",
    "TruncateReloadExecutor",
]
