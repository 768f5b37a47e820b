import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import pandas as pd

from rawcsv.errors import RowInsertError, TableCreateError
from rawcsv.schema import ColumnKind, ColumnSpec, TableSchema

log = logging.getLogger(__name__)

METADATA_TABLE = "rawcsv_columns_metadata"

_SQLITE_TYPES = {
    ColumnKind.SERIAL: "INTEGER",
    ColumnKind.INT: "INTEGER",
    ColumnKind.FLOAT: "REAL",
    ColumnKind.NUMERIC: "NUMERIC",
    ColumnKind.VARCHAR: "VARCHAR",
    ColumnKind.CHAR: "CHAR",
    ColumnKind.TEXT: "TEXT",
    ColumnKind.BLOB: "BLOB",
    ColumnKind.DATE: "DATE",
    ColumnKind.DATETIME: "DATETIME",
}


def quote_identifier(name: str) -> str:
    """Wrap an identifier in double quotes, doubling any embedded quote."""
    return '"' + name.replace('"', '""') + '"'


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class StorageEngine(ABC):
    """
    Abstract Base Class for the relational store rows are loaded into.

    The loader only needs to drop, create and insert. Implementations receive
    a complete `TableSchema` and single-row inserts, and must report a
    rejected row with `RowInsertError` without affecting later inserts.
    """

    @abstractmethod
    def drop_table_if_exists(self, table_name: str) -> None:
        """Drop ``table_name`` if present. A missing table is not an error."""
        pass

    @abstractmethod
    def create_table(self, schema: TableSchema) -> None:
        """
        Create a table (and its indexes) from ``schema``.

        Raises:
            TableCreateError: If the table cannot be created.
        """
        pass

    @abstractmethod
    def insert_row(self, table_name: str, row: Mapping[str, Any]) -> int:
        """
        Insert one row and return its generated row id.

        Raises:
            RowInsertError: If the row is rejected.
        """
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class SQLiteStorage(StorageEngine):
    def __init__(self, path: Union[str, Path], overwrite: bool = False):
        """
        Open (or create) the SQLite database rows are loaded into.

        Args:
            path: Database file path, or ``":memory:"`` for a private in-memory database.
            overwrite: If True, delete an existing file first.
        """
        self.in_memory = str(path) == ":memory:"
        self.path = Path(path) if self.in_memory else Path(path).resolve()

        if not self.in_memory:
            if self.path.exists() and overwrite:
                log.warning(f"Overwriting existing file: {self.path}")
                try:
                    self.path.unlink()
                except OSError as e:
                    raise OSError(
                        f"Could not remove existing file {self.path} during overwrite: {e}"
                    ) from e
            self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self.conn = sqlite3.connect(":memory:" if self.in_memory else str(self.path))
            if not self.in_memory:
                self.conn.execute("PRAGMA journal_mode=WAL;")
        except sqlite3.Error as e:
            raise sqlite3.Error(
                f"Failed to create or connect to database {self.path}: {e}"
            ) from e
        self.conn.row_factory = sqlite3.Row
        self._create_metadata_table()

    def _validate_connection(self):
        """Checks if the database connection is active."""
        if not self.conn:
            raise sqlite3.ProgrammingError("Database connection is closed.")

    def _create_metadata_table(self):
        self._validate_connection()
        with self.conn:
            self.conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {METADATA_TABLE} (
                table_name TEXT NOT NULL,
                column_name TEXT NOT NULL,
                position INTEGER NOT NULL,
                description TEXT,
                properties TEXT, -- JSON object of passthrough header properties
                PRIMARY KEY (table_name, column_name)
            )
            """)

    @staticmethod
    def column_definition(column: ColumnSpec, primary_key: bool = False) -> str:
        """
        Render the DDL fragment for one column.

        Only a single-column primary key of kind ``serial`` becomes an
        auto-increment key; ``serial`` elsewhere is a plain INTEGER.
        """
        parts = [quote_identifier(column.name), _SQLITE_TYPES[column.kind]]
        if column.kind.takes_length and column.length is not None:
            parts[-1] += f"({column.length})"
        if primary_key:
            if column.kind is ColumnKind.SERIAL:
                parts.append("PRIMARY KEY AUTOINCREMENT")
            else:
                parts.append("PRIMARY KEY")
        if column.not_null:
            parts.append("NOT NULL")
        if column.default is not None:
            parts.append(f"DEFAULT {_quote_literal(column.default)}")
        return " ".join(parts)

    def create_table_sql(self, schema: TableSchema) -> str:
        single_key = len(schema.primary_key) == 1
        column_defs = [
            self.column_definition(c, single_key and c.name in schema.primary_key)
            for c in schema.columns
        ]
        if not single_key:
            pk = ", ".join(quote_identifier(n) for n in schema.primary_key)
            column_defs.append(f"PRIMARY KEY ({pk})")
        return f"CREATE TABLE {quote_identifier(schema.name)} ({', '.join(column_defs)})"

    def drop_table_if_exists(self, table_name: str) -> None:
        self._validate_connection()
        exists = self.conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (table_name,)
        ).fetchone()
        if exists:
            log.warning(f"Dropping existing table '{table_name}' and its metadata.")
        try:
            with self.conn:
                self.conn.execute(f"DROP TABLE IF EXISTS {quote_identifier(table_name)}")
                self.conn.execute(
                    f"DELETE FROM {METADATA_TABLE} WHERE table_name = ?", (table_name,)
                )
        except sqlite3.Error as e:
            log.error(f"Error dropping table '{table_name}': {e}")
            raise TableCreateError(f"Failed to drop table '{table_name}': {e}") from e

    def create_table(self, schema: TableSchema) -> None:
        self._validate_connection()
        create_sql = self.create_table_sql(schema)
        metadata_rows = [
            (
                schema.name,
                column.name,
                position,
                column.description,
                json.dumps(dict(column.extra)) if column.extra else None,
            )
            for position, column in enumerate(schema.columns)
        ]
        try:
            with self.conn:  # Transaction
                self.conn.execute(create_sql)
                for index_name, index_columns in schema.indexes.items():
                    cols = ", ".join(quote_identifier(c) for c in index_columns)
                    self.conn.execute(
                        f"CREATE INDEX {quote_identifier(f'{schema.name}_{index_name}')} "
                        f"ON {quote_identifier(schema.name)} ({cols})"
                    )
                self.conn.executemany(
                    f"""
                    INSERT INTO {METADATA_TABLE}
                    (table_name, column_name, position, description, properties)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    metadata_rows,
                )
        except sqlite3.Error as e:
            log.error(f"Error creating table '{schema.name}': {e}")
            raise TableCreateError(f"Failed to create table '{schema.name}': {e}") from e
        log.info(
            f"Created table '{schema.name}' with {len(schema.columns)} columns "
            f"and {len(schema.indexes)} indexes."
        )

    def insert_row(self, table_name: str, row: Mapping[str, Any]) -> int:
        self._validate_connection()
        columns = list(row.keys())
        columns_str = ", ".join(quote_identifier(c) for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        insert_sql = (
            f"INSERT INTO {quote_identifier(table_name)} ({columns_str}) VALUES ({placeholders})"
        )
        try:
            with self.conn:  # One transaction per row
                cursor = self.conn.execute(insert_sql, [row[c] for c in columns])
        except sqlite3.Error as e:
            raise RowInsertError(str(e)) from e
        return cursor.lastrowid

    # --- Reading Methods ---

    def list_tables(self) -> List[str]:
        """List the names of all loaded tables."""
        self._validate_connection()
        cursor = self.conn.execute(
            f"SELECT DISTINCT table_name FROM {METADATA_TABLE} ORDER BY table_name"
        )
        return [row["table_name"] for row in cursor.fetchall()]

    def get_column_metadata(self, table_name: str) -> List[Dict[str, Any]]:
        """Return recorded descriptions and passthrough properties, in column order."""
        self._validate_connection()
        cursor = self.conn.execute(
            f"SELECT column_name, description, properties FROM {METADATA_TABLE} "
            "WHERE table_name = ? ORDER BY position",
            (table_name,),
        )
        result = []
        for row in cursor.fetchall():
            entry = dict(row)
            entry["properties"] = json.loads(entry["properties"]) if entry["properties"] else {}
            result.append(entry)
        return result

    def list_indexes(self, table_name: str) -> Dict[str, List[str]]:
        """Map each index on ``table_name`` to its columns."""
        self._validate_connection()
        indexes: Dict[str, List[str]] = {}
        for index_row in self.conn.execute(
            f"PRAGMA index_list({quote_identifier(table_name)})"
        ).fetchall():
            if index_row["origin"] != "c":  # Skip automatic pk/unique indexes
                continue
            name = index_row["name"]
            info = self.conn.execute(
                f"PRAGMA index_info({quote_identifier(name)})"
            ).fetchall()
            indexes[name] = [r["name"] for r in info]
        return indexes

    def read_table(self, table_name: str) -> pd.DataFrame:
        """
        Read a loaded table into a pandas DataFrame.

        Raises:
            ValueError: If the table does not exist.
        """
        self._validate_connection()
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        if not cursor.fetchone():
            raise ValueError(f"Table '{table_name}' not found in the database file.")
        return pd.read_sql(f"SELECT * FROM {quote_identifier(table_name)}", self.conn)

    def close(self):
        """Close the database connection."""
        if self.conn:
            try:
                self.conn.close()
                log.info(f"Closed connection to database: {self.path}")
            except sqlite3.Error as e:
                log.error(f"Error closing database connection {self.path}: {e}")
            finally:
                self.conn = None
