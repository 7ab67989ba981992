"""
CSV reader using Spark for raw source extracts.
"""

from pyspark.sql import SparkSession
from pyspark.sql.types import StringType, StructField, StructType

from ...observability.logger import get_logger

logger = get_logger(__name__)


class CSVReader:
    """
    Reads delimited source extracts with Spark.

    Columns are read positionally as text under the names the caller
    supplies, so the landing tables keep their own column names whatever
    the file's header says. Typing happens afterwards in the raw row models.
    """

    def __init__(self, spark: SparkSession):
        """
        Args:
            spark: Active Spark session
        """
        self.spark = spark

    @staticmethod
    def text_schema(column_names: list[str]) -> StructType:
        return StructType([StructField(name, StringType(), True) for name in column_names])

    def read(
        self,
        file_path: str,
        column_names: list[str],
        delimiter: str = ",",
        skip_rows: int = 1,
    ) -> list[dict[str, str | None]]:
        """
        Read a delimited file into row dictionaries.

        Args:
            file_path: Path to the file
            column_names: Column names in file order
            delimiter: Field delimiter
            skip_rows: Number of leading lines to drop (header lines)

        Returns:
            One dict per data line, in file order. Blank fields are None.

        Raises:
            pyspark.errors.AnalysisException: If the file does not exist
            Exception: If a line has more or fewer fields than column_names
                (Spark FAILFAST error, raised while collecting)
        """
        df = (
            self.spark.read
            .schema(self.text_schema(column_names))
            .option("header", "false")
            .option("delimiter", delimiter)
            .option("ignoreLeadingWhiteSpace", "false")
            .option("ignoreTrailingWhiteSpace", "false")
            .option("mode", "FAILFAST")
            .csv(file_path)
        )

        # collect() keeps file order for a single local file
        rows = [row.asDict() for row in df.collect()]
        if skip_rows:
            rows = rows[skip_rows:]

        logger.debug(
            f"Read {len(rows)} rows from {file_path}",
            extra={"file_path": file_path, "skip_rows": skip_rows},
        )
        return rows
