"""
Pipeline configuration.
"""

from .settings import DatabaseSettings, PipelineSettings, SourceFileConfig, load_settings

__all__ = [
    "DatabaseSettings",
    "PipelineSettings",
    "SourceFileConfig",
    "load_settings",
]
