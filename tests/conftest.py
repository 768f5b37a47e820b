import csv
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

import pytest

from rawcsv.database import SQLiteStorage, StorageEngine
from rawcsv.errors import RowInsertError
from rawcsv.schema import TableSchema

# --- Fixtures ---


class FakeStorage(StorageEngine):
    """In-memory storage engine that can be told to reject specific inserts."""

    def __init__(self):
        self.schemas: Dict[str, TableSchema] = {}
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.dropped: List[str] = []
        # 1-based insert attempts (across all tables) that raise RowInsertError
        self.fail_attempts: Set[int] = set()
        self.attempts = 0

    def drop_table_if_exists(self, table_name: str) -> None:
        self.dropped.append(table_name)
        self.schemas.pop(table_name, None)
        self.tables.pop(table_name, None)

    def create_table(self, schema: TableSchema) -> None:
        self.schemas[schema.name] = schema
        self.tables[schema.name] = []

    def insert_row(self, table_name: str, row: Mapping[str, Any]) -> int:
        self.attempts += 1
        if self.attempts in self.fail_attempts:
            raise RowInsertError("UNIQUE constraint failed")
        rows = self.tables[table_name]
        rows.append(dict(row))
        return len(rows)


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provides a path for a temporary database file."""
    return tmp_path / "test_rawcsv.sqlite"


@pytest.fixture
def storage(tmp_db_path: Path) -> SQLiteStorage:
    """Provides a new SQLiteStorage instance, closed after test."""
    db = SQLiteStorage(tmp_db_path)
    yield db
    db.close()


@pytest.fixture
def create_csv_file(tmp_path: Path):
    """
    Fixture to create a temporary CSV file with specified content.
    """

    def _create_csv_file(
        file_name: str,
        data: List[List[Union[str, int, float]]],
        sub_dir: Optional[str] = None,
    ) -> Path:
        if sub_dir:
            dir_path = tmp_path / sub_dir
            dir_path.mkdir(parents=True, exist_ok=True)
            file_path = dir_path / file_name
        else:
            file_path = tmp_path / file_name

        with open(file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerows(data)
        return file_path

    return _create_csv_file


@pytest.fixture
def create_text_file(tmp_path: Path):
    """
    Fixture to create a temporary text file with specified content.
    Useful for CSV content the csv module would quote differently.
    """

    def _create_text_file(
        file_name: str,
        content: str,
        encoding: str = "utf-8",
        sub_dir: Optional[str] = None,
    ) -> Path:
        if sub_dir:
            dir_path = tmp_path / sub_dir
            dir_path.mkdir(parents=True, exist_ok=True)
            file_path = dir_path / file_name
        else:
            file_path = tmp_path / file_name

        with open(file_path, "w", encoding=encoding, newline="") as f:
            f.write(content)
        return file_path

    return _create_text_file
