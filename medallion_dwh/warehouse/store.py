"""
Transactional persistence for layer tables.

A LayerStore offers exactly what a truncate-and-reload batch needs: one
outer transaction, TRUNCATE, bulk append and full reads. Two
implementations share that contract:

- PostgresLayerStore: the warehouse itself, one pooled connection held for
  the whole transaction
- InMemoryLayerStore: dict-backed tables with snapshot rollback, used for
  dry runs and tests
"""

import copy
import itertools
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from psycopg import sql

from ..core.catalog import ALL_TABLES, TableSpec
from ..observability.logger import get_logger
from .connection import DatabaseConnectionPool

logger = get_logger(__name__)


class StoreError(Exception):
    """Raised when the store is used in a way it does not support."""


class LayerStore(ABC):
    """
    Persistence contract for layer batches.

    Operations issued inside transaction() belong to that transaction and
    disappear together if it rolls back. Operations issued outside of it run
    in their own short unit of work and are durable immediately.
    """

    @abstractmethod
    def transaction(self):
        """Context manager wrapping one all-or-nothing unit of work."""

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """True while a transaction() block is active."""

    @abstractmethod
    def truncate(self, table: TableSpec) -> None:
        """Remove every row of the table."""

    @abstractmethod
    def insert_rows(self, table: TableSpec, rows: list[dict[str, Any]]) -> int:
        """
        Append rows to the table.

        Rows are dictionaries keyed by column name; generated columns are
        ignored and missing columns are written as NULL.

        Returns:
            Number of rows appended
        """

    @abstractmethod
    def fetch_rows(
        self,
        table: TableSpec,
        order_by: list[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows of the table as dictionaries keyed by column name."""


class PostgresLayerStore(LayerStore):
    """LayerStore backed by the warehouse database."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool
        self._conn = None

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None

    @contextmanager
    def transaction(self) -> Iterator["PostgresLayerStore"]:
        if self._conn is not None:
            raise StoreError("A transaction is already active on this store")

        with self.pool.get_connection() as conn:
            with conn.transaction():
                self._conn = conn
                try:
                    yield self
                finally:
                    self._conn = None

    @contextmanager
    def _cursor(self):
        if self._conn is not None:
            with self._conn.cursor() as cur:
                yield cur
            return

        with self.pool.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    yield cur

    @staticmethod
    def _identifier(table: TableSpec) -> sql.Identifier:
        return sql.Identifier(table.schema_name, table.name)

    def truncate(self, table: TableSpec) -> None:
        query = sql.SQL("TRUNCATE TABLE {}").format(self._identifier(table))
        with self._cursor() as cur:
            cur.execute(query)

    def insert_rows(self, table: TableSpec, rows: list[dict[str, Any]]) -> int:
        if not rows:
            return 0

        columns = table.column_names
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            self._identifier(table),
            sql.SQL(", ").join(sql.Identifier(name) for name in columns),
            sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        params = [tuple(row.get(name) for name in columns) for row in rows]

        with self._cursor() as cur:
            cur.executemany(query, params)

        return len(params)

    def fetch_rows(
        self,
        table: TableSpec,
        order_by: list[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = sql.SQL("SELECT {} FROM {}").format(
            sql.SQL(", ").join(sql.Identifier(column.name) for column in table.columns),
            self._identifier(table),
        )
        if order_by:
            direction = sql.SQL(" DESC") if descending else sql.SQL("")
            query = query + sql.SQL(" ORDER BY ") + sql.SQL(", ").join(
                sql.Identifier(name) + direction for name in order_by
            )
        params = None
        if limit is not None:
            query = query + sql.SQL(" LIMIT %s")
            params = (limit,)

        with self._cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()


class InMemoryLayerStore(LayerStore):
    """
    LayerStore keeping every table in process memory.

    A transaction snapshots all tables on entry and restores the snapshot if
    the block raises. Identity counters are not rolled back, the same way a
    PostgreSQL sequence is not.
    """

    def __init__(self, tables: tuple[TableSpec, ...] = ALL_TABLES):
        self._specs = {table.qualified_name: table for table in tables}
        self._tables: dict[str, list[dict[str, Any]]] = {name: [] for name in self._specs}
        self._identity = itertools.count(1)
        self._snapshot: dict[str, list[dict[str, Any]]] | None = None

    @property
    def in_transaction(self) -> bool:
        return self._snapshot is not None

    @contextmanager
    def transaction(self) -> Iterator["InMemoryLayerStore"]:
        if self._snapshot is not None:
            raise StoreError("A transaction is already active on this store")

        self._snapshot = copy.deepcopy(self._tables)
        try:
            yield self
        except BaseException:
            self._tables = self._snapshot
            logger.debug("In-memory transaction rolled back")
            raise
        finally:
            self._snapshot = None

    def _rows(self, table: TableSpec) -> list[dict[str, Any]]:
        if table.qualified_name not in self._tables:
            raise StoreError(f"Table {table.qualified_name} is not held by this store")
        return self._tables[table.qualified_name]

    def truncate(self, table: TableSpec) -> None:
        self._rows(table).clear()

    def insert_rows(self, table: TableSpec, rows: list[dict[str, Any]]) -> int:
        stored = self._rows(table)
        for row in rows:
            record = {}
            for column in table.columns:
                if column.generated:
                    record[column.name] = next(self._identity)
                else:
                    record[column.name] = copy.deepcopy(row.get(column.name))
            stored.append(record)
        return len(rows)

    def fetch_rows(
        self,
        table: TableSpec,
        order_by: list[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = [dict(row) for row in self._rows(table)]
        if order_by:
            # NULLs sort last ascending and first descending, like PostgreSQL
            rows.sort(
                key=lambda row: tuple(
                    (row[name] is None, row[name] if row[name] is not None else 0)
                    for name in order_by
                ),
                reverse=descending,
            )
        if limit is not None:
            rows = rows[:limit]
        return rows

    def row_counts(self) -> dict[str, int]:
        """Rows per table, for dry-run reporting."""
        return {name: len(rows) for name, rows in self._tables.items()}
