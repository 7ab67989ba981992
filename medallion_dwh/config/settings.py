"""
Pipeline configuration.

Loads the source file list and database settings from a YAML file.

Expected YAML format:
```yaml
data_dir: datasets
as_of: 2024-06-30            # optional, defaults to today
sources:
  bronze.crm_cust_info:
    path: source_crm/cust_info.csv
    delimiter: ","
    skip_rows: 1
  ...
database:
  host: localhost
  port: 5432
  database: datawarehouse
  user: etl
```

The database password is never read from the file: it comes from the
DB_PASSWORD environment variable (optionally loaded from a .env file).
DB_HOST, DB_PORT, DB_NAME and DB_USER override the file values.
"""

import os
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ..core.catalog import BRONZE_TABLES

DEFAULT_CONFIG_PATH = "config/pipeline.yaml"


class SourceFileConfig(BaseModel):
    """
    One delimited source extract feeding a bronze table.

    Attributes:
        path: File path, relative paths resolve against data_dir
        delimiter: Field delimiter
        skip_rows: Leading lines to drop (header lines)
    """

    path: str = Field(..., min_length=1)
    delimiter: str = Field(",", min_length=1, max_length=1)
    skip_rows: int = Field(1, ge=0)


class DatabaseSettings(BaseModel):
    """Warehouse connection settings."""

    host: str = "localhost"
    port: int = Field(5432, ge=1, le=65535)
    database: str = "datawarehouse"
    user: str = "etl"
    password: str | None = Field(None, repr=False)
    min_pool_size: int = Field(1, ge=1)
    max_pool_size: int = Field(4, ge=1)
    connect_timeout: float = Field(30.0, gt=0)

    @field_validator("max_pool_size")
    @classmethod
    def validate_pool_size(cls, v, info):
        """Max pool size must not be below the minimum."""
        min_size = info.data.get("min_pool_size")
        if min_size is not None and v < min_size:
            raise ValueError(f"max_pool_size ({v}) must be >= min_pool_size ({min_size})")
        return v

    def with_env_overrides(self) -> "DatabaseSettings":
        """Apply DB_* environment variables on top of these settings."""
        overrides: dict[str, Any] = {}
        for field_name, env_var in (
            ("host", "DB_HOST"),
            ("port", "DB_PORT"),
            ("database", "DB_NAME"),
            ("user", "DB_USER"),
            ("password", "DB_PASSWORD"),
        ):
            value = os.getenv(env_var)
            if value:
                overrides[field_name] = value
        if not overrides:
            return self
        return DatabaseSettings(**{**self.model_dump(), **overrides})


class PipelineSettings(BaseModel):
    """
    Complete pipeline configuration.

    Attributes:
        data_dir: Base directory of the source extracts
        sources: Source file per bronze table (schema-qualified table name)
        database: Warehouse connection settings
        as_of: Reference date for future-birthdate checks (None means today)
    """

    data_dir: str = "."
    sources: dict[str, SourceFileConfig] = Field(default_factory=dict)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    as_of: date | None = None

    @field_validator("sources")
    @classmethod
    def validate_sources(cls, v):
        """Every source must target a bronze table."""
        known = {table.qualified_name for table in BRONZE_TABLES}
        unknown = sorted(set(v) - known)
        if unknown:
            raise ValueError(
                f"Unknown bronze tables in sources: {', '.join(unknown)}. "
                f"Must be among: {', '.join(sorted(known))}"
            )
        return v

    def source_path(self, table_name: str) -> Path:
        """
        Resolved path of the source feeding a bronze table.

        Raises:
            KeyError: If no source is configured for the table
        """
        if table_name not in self.sources:
            raise KeyError(f"No source file configured for {table_name}")
        path = Path(self.sources[table_name].path)
        if not path.is_absolute():
            path = Path(self.data_dir) / path
        return path

    def reference_date(self) -> date:
        return self.as_of or date.today()


def load_settings(config_path: str | Path | None = None, env_file: str | Path | None = None) -> PipelineSettings:
    """
    Load pipeline settings from YAML and the environment.

    Args:
        config_path: YAML file (defaults to config/pipeline.yaml)
        env_file: Optional .env file to load before reading DB_* variables

    Returns:
        PipelineSettings with environment overrides applied

    Raises:
        FileNotFoundError: If the YAML file does not exist
        ValueError: If the YAML is not a mapping
        pydantic.ValidationError: If a value is invalid
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    path = Path(config_path or DEFAULT_CONFIG_PATH)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline configuration file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Pipeline configuration must be a mapping, got {type(config).__name__}")

    settings = PipelineSettings(**config)
    return settings.model_copy(update={"database": settings.database.with_env_overrides()})
