import csv
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from rawcsv.database import StorageEngine
from rawcsv.discovery import NotFound, discover
from rawcsv.errors import (
    DiscoveryError,
    FileOpenError,
    HeaderFormatError,
    RowFormatError,
    RowInsertError,
    TableCreateError,
    UsageError,
)
from rawcsv.schema import TableSchema, synthesize_schema
from rawcsv.types import BatchReport, FilePath, LoadReport

log = logging.getLogger(__name__)

DEFAULT_PREFIX = "_raw"
ESCAPED_QUOTE = '\\"'


def table_name_for(file_path: FilePath, prefix: str = DEFAULT_PREFIX) -> str:
    """Name of the table a CSV file is loaded into: ``<prefix>_<file stem>``."""
    return f"{prefix}_{Path(file_path).stem}"


def unescape_value(value: str) -> str:
    """Replace the literal two-character sequence ``\\"`` with ``"``."""
    return value.replace(ESCAPED_QUOTE, '"')


def build_row(columns: Sequence[str], values: Sequence[str]) -> Dict[str, str]:
    """
    Map one parsed CSV row onto the header-derived column names.

    Raises:
        RowFormatError: If the row does not have exactly one value per column.
    """
    if len(values) != len(columns):
        raise RowFormatError(
            f"Expected {len(columns)} fields, found {len(values)}."
        )
    return {column: unescape_value(value) for column, value in zip(columns, values)}


class RowLoader:
    """
    Loads CSV files into tables described by their annotated header row.

    Each file gets its own table, dropped and recreated on every load. Rows are
    inserted one at a time; a row that is malformed or rejected by the storage
    engine is logged and counted, and loading carries on with the next row.

    Attributes:
        storage: The storage engine tables are created in.
    """

    def __init__(self, storage: StorageEngine):
        self.storage = storage

    def _read_rows(self, path: Path, reader) -> Iterator[Tuple[int, List[str]]]:
        """Yield ``(line_number, fields)`` for every non-blank CSV row."""
        try:
            for fields in reader:
                if not fields:
                    continue
                yield reader.line_num, fields
        except (csv.Error, UnicodeDecodeError, OSError) as e:
            raise FileOpenError(
                f"Failed reading {path} near line {reader.line_num}: {e}"
            ) from e

    def create_table(self, table_name: str, header_row: Sequence[str]) -> TableSchema:
        """Synthesize the schema for ``header_row`` and (re)create the table."""
        schema = synthesize_schema(table_name, header_row)
        self.storage.drop_table_if_exists(table_name)
        self.storage.create_table(schema)
        return schema

    def load(
        self,
        file_path: FilePath,
        prefix: str = DEFAULT_PREFIX,
        limit: Optional[int] = None,
    ) -> LoadReport:
        """
        Load a single CSV file into ``<prefix>_<file stem>``.

        Args:
            file_path: The CSV file to load.
            prefix: Table name prefix.
            limit: Maximum number of data rows to load. None or 0 loads every row.

        Returns:
            A `LoadReport` with inserted and failed row counts.

        Raises:
            UsageError: If ``limit`` is negative.
            FileOpenError: If the file cannot be opened or read.
            HeaderFormatError: If the file has no header row or the header is invalid.
            DuplicateColumnError: If two header cells map to the same column name.
            TableCreateError: If the storage engine cannot create the table.
        """
        if limit is not None and limit < 0:
            raise UsageError(f"Row limit must be a non-negative integer, got {limit}.")

        path = Path(file_path)
        table_name = table_name_for(path, prefix)
        try:
            f = open(path, newline="", encoding="utf-8-sig")
        except OSError as e:
            raise FileOpenError(f"Cannot open {path}: {e}") from e

        with f:
            reader = csv.reader(f)
            rows = self._read_rows(path, reader)

            first = next(rows, None)
            if first is None:
                raise HeaderFormatError(f"No header row found in {path}.")
            schema = self.create_table(table_name, first[1])
            columns = schema.data_columns
            report = LoadReport(source=path, table_name=table_name)
            log.info(f"Loading {path} into '{table_name}'")

            row_number = 0
            for line_number, fields in rows:
                if limit and row_number >= limit:
                    log.info(f"Row limit of {limit} reached for {path}")
                    break
                row_number += 1
                try:
                    row = build_row(columns, fields)
                    row_id = self.storage.insert_row(table_name, row)
                except (RowFormatError, RowInsertError) as e:
                    report.rows_failed += 1
                    log.warning(
                        f"Row {row_number} (line {line_number}) of {path} "
                        f"was not inserted into '{table_name}': {e}"
                    )
                    continue
                report.rows_inserted += 1
                log.debug(f"Inserted row {row_number} of {path} as __id {row_id}")

        log.info(
            f"Finished {path}: {report.rows_inserted} inserted, "
            f"{report.rows_failed} failed."
        )
        return report

    def load_path(
        self,
        root: FilePath,
        prefix: str = DEFAULT_PREFIX,
        limit: Optional[int] = None,
    ) -> BatchReport:
        """
        Load every CSV file found under ``root``, one table per file.

        Errors that prevent a file's table from being built are recorded in
        `BatchReport.failures` and do not stop the remaining files.

        Raises:
            UsageError: If ``limit`` is negative.
            DiscoveryError: If ``root`` does not exist.
        """
        if limit is not None and limit < 0:
            raise UsageError(f"Row limit must be a non-negative integer, got {limit}.")

        result = discover(root)
        if isinstance(result, NotFound):
            raise DiscoveryError(f"Path not found: {result.root}")

        batch = BatchReport()
        for path in result.paths:
            try:
                batch.reports.append(self.load(path, prefix=prefix, limit=limit))
            except (FileOpenError, HeaderFormatError, TableCreateError) as e:
                log.error(f"Skipping {path}: {e}")
                batch.failures[str(path)] = str(e)
        return batch
