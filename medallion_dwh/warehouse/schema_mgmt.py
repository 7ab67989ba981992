"""
Schema management operations for the data warehouse.

Creates the bronze, silver, gold and audit schemas and every table of the
catalog. All DDL is idempotent.
"""

from psycopg import sql

from ..core.catalog import ALL_TABLES, AUDIT, LAYERS, TableSpec
from ..observability.logger import get_logger
from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

SCHEMAS = (*LAYERS, AUDIT)


def create_table_statement(table: TableSpec) -> sql.Composed:
    """
    Build the CREATE TABLE IF NOT EXISTS statement of a catalog table.

    Column types come from the catalog and are trusted SQL fragments; names
    are quoted as identifiers.
    """
    columns = sql.SQL(", ").join(
        sql.SQL("{} {}").format(sql.Identifier(column.name), sql.SQL(column.sql_type))
        for column in table.columns
    )
    return sql.SQL("CREATE TABLE IF NOT EXISTS {} ({})").format(
        sql.Identifier(table.schema_name, table.name), columns
    )


class SchemaManager:
    """
    Provisions the warehouse database.

    Handles:
    - Creating the layer schemas and the audit schema
    - Creating every catalog table
    - Dropping everything again (tests and rebuilds)
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Args:
            pool: Database connection pool
        """
        self.pool = pool

    def initialize(self, tables: tuple[TableSpec, ...] = ALL_TABLES) -> int:
        """
        Create missing schemas and tables in one transaction.

        Returns:
            Number of tables ensured
        """
        with self.pool.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    for schema in SCHEMAS:
                        cur.execute(
                            sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema))
                        )
                    for table in tables:
                        cur.execute(create_table_statement(table))
                        logger.debug(f"Ensured table {table.qualified_name}")

        logger.info(
            "Warehouse schema initialized",
            extra={"schemas": list(SCHEMAS), "table_count": len(tables)},
        )
        return len(tables)

    def drop_all(self) -> None:
        """Drop the layer and audit schemas with everything in them."""
        with self.pool.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    for schema in SCHEMAS:
                        cur.execute(
                            sql.SQL("DROP SCHEMA IF EXISTS {} CASCADE").format(sql.Identifier(schema))
                        )
        logger.warning("Warehouse schemas dropped", extra={"schemas": list(SCHEMAS)})

    def list_tables(self) -> list[str]:
        """Schema-qualified names of the warehouse tables present in the database."""
        rows = self.pool.execute_query(
            """
            SELECT table_schema, table_name
            FROM information_schema.tables
            WHERE table_schema = ANY(%s)
            ORDER BY table_schema, table_name
            """,
            (list(SCHEMAS),),
        )
        return [f"{row['table_schema']}.{row['table_name']}" for row in rows]
